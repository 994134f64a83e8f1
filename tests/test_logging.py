import json
import logging
import os
import tempfile
import unittest

import structlog

from skilltrack.config import settings
from skilltrack.logging import setup_logging


class SetupLoggingTests(unittest.TestCase):
    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self._error_file = settings.log_error_file
        settings.log_error_file = os.path.join(self.tmp.name, "logs", "errors.log")

    def tearDown(self):
        root = logging.getLogger()
        for handler in list(root.handlers):
            handler.close()
            root.removeHandler(handler)
        settings.log_error_file = self._error_file
        self.tmp.cleanup()

    def test_levels_come_from_settings(self):
        setup_logging("warning")
        levels = sorted(h.level for h in logging.getLogger().handlers)
        self.assertEqual(levels, [logging.WARNING, logging.ERROR])
        self.assertEqual(logging.getLogger("uvicorn.access").level, logging.WARNING)

    def test_errors_are_mirrored_as_json(self):
        setup_logging()
        structlog.get_logger().error("layout_save_failed", page="dashboard")
        with open(settings.log_error_file, encoding="utf-8") as fh:
            record = json.loads(fh.readline())
        self.assertEqual(record["event"], "layout_save_failed")
        self.assertEqual(record["level"], "error")
        self.assertEqual(record["page"], "dashboard")

    def test_no_error_file_when_unset(self):
        settings.log_error_file = ""
        setup_logging()
        self.assertEqual(len(logging.getLogger().handlers), 1)


if __name__ == "__main__":
    unittest.main()
