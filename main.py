#!/usr/bin/env python3
"""
Timed Quiz - Main Entry Point

Asks the questions from a CSV (or JSON) file one at a time. A single
countdown covers the whole quiz; when it runs out the quiz stops and the
score is printed.

Usage:
    python main.py [--csv problems.csv] [--limit 30] [--shuffle]

Environment Variables:
    QUIZ_FILE, QUIZ_TIME_LIMIT, QUIZ_SHUFFLE, QUIZ_SEED,
    QUIZ_LOG_LEVEL, QUIZ_LOG_DIR: override the defaults (flags win)
"""

import sys

from timed_quiz.cli import main

if __name__ == "__main__":
    sys.exit(main())
