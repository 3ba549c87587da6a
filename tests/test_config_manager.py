"""
Unit tests for the ConfigManager class.
"""
import json
import shutil
import tempfile
import unittest
from pathlib import Path

from timed_quiz.config_manager import ConfigManager
from timed_quiz.errors import ConfigError


class TestConfigManager(unittest.TestCase):
    """Test cases for ConfigManager functionality."""

    def setUp(self):
        """Set up test fixtures."""
        self.config_manager = ConfigManager()
        self.temp_dir = tempfile.mkdtemp()

    def tearDown(self):
        """Clean up test fixtures."""
        shutil.rmtree(self.temp_dir)

    def write_config(self, data) -> Path:
        path = Path(self.temp_dir) / "config.json"
        path.write_text(json.dumps(data), encoding="utf-8")
        return path

    def test_default_settings(self):
        settings = self.config_manager.get_quiz_settings()

        self.assertEqual(settings.quiz_file, ConfigManager.DEFAULT_QUIZ_FILE)
        self.assertEqual(settings.time_limit, ConfigManager.DEFAULT_TIME_LIMIT)
        self.assertEqual(settings.shuffle, ConfigManager.DEFAULT_SHUFFLE)
        self.assertEqual(settings.log_level, "WARNING")
        self.assertIsNone(settings.seed)
        self.assertIsNone(settings.log_directory)

    def test_get_quiz_settings_returns_copy(self):
        settings = self.config_manager.get_quiz_settings()
        settings.time_limit = 999

        self.assertEqual(self.config_manager.get_quiz_settings().time_limit, 30)

    def test_set_time_limit_valid(self):
        result = self.config_manager.set_time_limit(60)

        self.assertTrue(result['success'])
        self.assertEqual(self.config_manager.get_quiz_settings().time_limit, 60)

    def test_set_time_limit_zero_disables(self):
        result = self.config_manager.set_time_limit(0)

        self.assertTrue(result['success'])
        self.assertIn("disabled", result['message'])
        self.assertEqual(self.config_manager.get_quiz_settings().time_limit, 0)

    def test_set_time_limit_invalid(self):
        for value in (-1, ConfigManager.MAX_TIME_LIMIT + 1, "30", 2.5, True):
            with self.subTest(value=value):
                result = self.config_manager.set_time_limit(value)
                self.assertFalse(result['success'])
                self.assertIn('error', result)

        self.assertEqual(self.config_manager.get_quiz_settings().time_limit, 30)

    def test_set_shuffle(self):
        self.assertTrue(self.config_manager.set_shuffle(True)['success'])
        self.assertTrue(self.config_manager.get_quiz_settings().shuffle)

        self.assertFalse(self.config_manager.set_shuffle("yes")['success'])

    def test_set_seed(self):
        self.assertTrue(self.config_manager.set_seed(42)['success'])
        self.assertEqual(self.config_manager.get_quiz_settings().seed, 42)
        self.assertTrue(self.config_manager.set_seed(None)['success'])
        self.assertFalse(self.config_manager.set_seed("42")['success'])

    def test_set_quiz_file(self):
        self.assertTrue(self.config_manager.set_quiz_file("quizzes/capitals.csv")['success'])
        self.assertEqual(self.config_manager.get_quiz_settings().quiz_file, "quizzes/capitals.csv")
        self.assertFalse(self.config_manager.set_quiz_file("  ")['success'])

    def test_set_max_outstanding_reads(self):
        self.assertTrue(self.config_manager.set_max_outstanding_reads(2)['success'])
        self.assertEqual(self.config_manager.get_quiz_settings().max_outstanding_reads, 2)
        self.assertFalse(self.config_manager.set_max_outstanding_reads(0)['success'])
        self.assertTrue(self.config_manager.set_max_outstanding_reads(None)['success'])

    def test_set_log_level(self):
        self.assertTrue(self.config_manager.set_log_level("debug")['success'])
        self.assertEqual(self.config_manager.get_quiz_settings().log_level, "DEBUG")
        self.assertFalse(self.config_manager.set_log_level("LOUD")['success'])

    def test_load_config_file(self):
        path = self.write_config({
            "quiz_file": "capitals.csv",
            "time_limit": 45,
            "shuffle": True,
            "seed": 3,
            "logging": {"level": "INFO", "log_directory": "./logs/"}
        })

        result = self.config_manager.load_config_file(path)
        settings = self.config_manager.get_quiz_settings()

        self.assertTrue(result['success'])
        self.assertEqual(settings.quiz_file, "capitals.csv")
        self.assertEqual(settings.time_limit, 45)
        self.assertTrue(settings.shuffle)
        self.assertEqual(settings.seed, 3)
        self.assertEqual(settings.log_level, "INFO")
        self.assertEqual(settings.log_directory, "./logs/")

    def test_load_config_file_ignores_unknown_keys(self):
        path = self.write_config({"token": "abc", "time_limit": 10})

        with self.assertLogs('timed_quiz.config_manager', level='WARNING') as logs:
            self.config_manager.load_config_file(path)

        self.assertEqual(self.config_manager.get_quiz_settings().time_limit, 10)
        self.assertTrue(any("token" in r.getMessage() for r in logs.records))

    def test_load_config_file_invalid_value(self):
        path = self.write_config({"time_limit": -5})

        with self.assertRaises(ConfigError):
            self.config_manager.load_config_file(path)

    def test_load_config_file_invalid_json(self):
        path = Path(self.temp_dir) / "config.json"
        path.write_text("{ not json", encoding="utf-8")

        with self.assertRaises(ConfigError):
            self.config_manager.load_config_file(path)

    def test_load_config_file_missing(self):
        with self.assertRaises(ConfigError):
            self.config_manager.load_config_file(Path(self.temp_dir) / "missing.json")

    def test_load_config_file_not_object(self):
        with self.assertRaises(ConfigError):
            self.config_manager.load_config_file(self.write_config([1, 2, 3]))

    def test_apply_environment(self):
        environ = {
            "QUIZ_FILE": "env.csv",
            "QUIZ_TIME_LIMIT": "12",
            "QUIZ_SHUFFLE": "true",
            "QUIZ_SEED": "9",
            "QUIZ_LOG_LEVEL": "error",
            "UNRELATED": "x",
        }

        self.config_manager.apply_environment(environ)
        settings = self.config_manager.get_quiz_settings()

        self.assertEqual(settings.quiz_file, "env.csv")
        self.assertEqual(settings.time_limit, 12)
        self.assertTrue(settings.shuffle)
        self.assertEqual(settings.seed, 9)
        self.assertEqual(settings.log_level, "ERROR")

    def test_apply_environment_false_shuffle(self):
        self.config_manager.set_shuffle(True)
        self.config_manager.apply_environment({"QUIZ_SHUFFLE": "0"})

        self.assertFalse(self.config_manager.get_quiz_settings().shuffle)

    def test_apply_environment_empty_values_are_skipped(self):
        self.config_manager.apply_environment({"QUIZ_TIME_LIMIT": ""})
        self.assertEqual(self.config_manager.get_quiz_settings().time_limit, 30)

    def test_apply_environment_invalid_integer(self):
        with self.assertRaises(ConfigError):
            self.config_manager.apply_environment({"QUIZ_TIME_LIMIT": "soon"})

    def test_apply_environment_read_bound(self):
        self.config_manager.apply_environment({"QUIZ_MAX_READS": "3"})
        self.assertEqual(self.config_manager.get_quiz_settings().max_outstanding_reads, 3)

        with self.assertRaises(ConfigError):
            self.config_manager.apply_environment({"QUIZ_MAX_READS": "0"})
        with self.assertRaises(ConfigError):
            self.config_manager.apply_environment({"QUIZ_MAX_READS": "many"})

    def test_environment_overrides_config_file(self):
        self.config_manager.load_config_file(self.write_config({"time_limit": 45}))
        self.config_manager.apply_environment({"QUIZ_TIME_LIMIT": "15"})

        self.assertEqual(self.config_manager.get_quiz_settings().time_limit, 15)


if __name__ == '__main__':
    unittest.main()
