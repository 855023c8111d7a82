import unittest
import logging
from logging.handlers import RotatingFileHandler

from voice_relay.config.logging_config import configure_logging

class TestLoggingConfig(unittest.TestCase):
    def test_configure_logging(self):
        # Test that the function returns a logger
        logger = configure_logging("INFO")
        self.assertIsInstance(logger, logging.Logger)

        # Test that the logger has the correct name
        self.assertEqual(logger.name, "voice_relay")

        # Test that the logger has the correct level
        self.assertEqual(logger.level, logging.INFO)

        # Console handler first, writing the standard format
        self.assertGreaterEqual(len(logger.handlers), 1)
        handler = logger.handlers[0]
        self.assertIsInstance(handler, logging.StreamHandler)
        formatter = handler.formatter
        self.assertEqual(formatter._fmt, "%(asctime)s - %(name)s - %(levelname)s - %(message)s")
        self.assertFalse(logger.propagate)

    def test_level_from_argument(self):
        logger = configure_logging("debug")
        self.assertEqual(logger.level, logging.DEBUG)

    def test_unknown_level_falls_back_to_info(self):
        logger = configure_logging("CHATTY")
        self.assertEqual(logger.level, logging.INFO)

    def test_reconfigure_does_not_duplicate_handlers(self):
        configure_logging("INFO")
        logger = configure_logging("INFO")
        rotating = [h for h in logger.handlers if isinstance(h, RotatingFileHandler)]
        self.assertLessEqual(len(rotating), 1)
        self.assertLessEqual(len(logger.handlers), 2)

if __name__ == "__main__":
    unittest.main()
