#!/usr/bin/env python3
"""
Test runner for the timed quiz.
Runs all unit and integration tests and prints a summary report.

Usage:
    python -m tests.run_all_tests [category]
"""
import sys
import time
import unittest
from pathlib import Path

# Make the project root importable when run as a script
sys.path.insert(0, str(Path(__file__).parent.parent))

TEST_CATEGORIES = {
    'unit': [
        'tests.test_models',
        'tests.test_response_reader',
        'tests.test_timer_lifecycle',
        'tests.test_quiz_engine',
        'tests.test_data_manager',
        'tests.test_config_manager',
    ],
    'integration': ['tests.test_integration_comprehensive'],
    'models': ['tests.test_models'],
    'reader': ['tests.test_response_reader'],
    'timer': ['tests.test_timer_lifecycle'],
    'engine': ['tests.test_quiz_engine'],
    'data': ['tests.test_data_manager'],
    'config': ['tests.test_config_manager'],
}


def load_suite(module_names):
    """Load the named test modules into one suite."""
    loader = unittest.TestLoader()
    suite = unittest.TestSuite()
    for module_name in module_names:
        try:
            suite.addTest(loader.loadTestsFromName(module_name))
            print(f"✓ Loaded tests from {module_name}")
        except Exception as e:
            print(f"✗ Failed to load {module_name}: {e}")
            raise
    return suite


def run_test_suite(module_names=None):
    """Run the given modules (default: everything) and print a report."""
    if module_names is None:
        module_names = TEST_CATEGORIES['unit'] + TEST_CATEGORIES['integration']

    print("=" * 70)
    print("Timed Quiz - Test Suite")
    print("=" * 70)

    suite = load_suite(module_names)

    runner = unittest.TextTestRunner(verbosity=2, stream=sys.stdout, buffer=True)
    start_time = time.time()
    result = runner.run(suite)
    end_time = time.time()

    total_tests = result.testsRun
    failures = len(result.failures)
    errors = len(result.errors)
    skipped = len(result.skipped)
    passed = total_tests - failures - errors - skipped

    print("\n" + "=" * 70)
    print("Test Summary Report")
    print("=" * 70)
    print(f"Total Tests Run: {total_tests}")
    print(f"Passed: {passed}")
    print(f"Failed: {failures}")
    print(f"Errors: {errors}")
    print(f"Skipped: {skipped}")
    print(f"Success Rate: {(passed/total_tests)*100:.1f}%" if total_tests > 0 else "N/A")
    print(f"Execution Time: {end_time - start_time:.2f} seconds")

    return result.wasSuccessful()


def run_specific_test_category(category):
    """Run tests for a specific category."""
    if category not in TEST_CATEGORIES:
        print(f"Unknown category: {category}")
        print(f"Available categories: {', '.join(TEST_CATEGORIES.keys())}")
        return False

    print(f"Running {category} tests...")
    return run_test_suite(TEST_CATEGORIES[category])


if __name__ == '__main__':
    if len(sys.argv) > 1:
        success = run_specific_test_category(sys.argv[1])
    else:
        success = run_test_suite()
    sys.exit(0 if success else 1)
