"""Unit tests for error formatting and log filtering."""

import logging
import sys
import unittest
from pathlib import Path

backend_dir = Path(__file__).resolve().parents[2]
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))

from agents.models.gui_actions import EmptyPathError
from utils.error_formatter import ErrorFormatter
from utils.logger import PollingRequestAggregator


class TestErrorFormatter(unittest.TestCase):
    """User-facing error strings."""

    def test_plain_types_omit_class_name(self):
        self.assertEqual(
            ErrorFormatter.format_error_message(RuntimeError("busy"), "Click"),
            "Click failed: busy",
        )

    def test_specific_types_include_class_name(self):
        self.assertEqual(
            ErrorFormatter.format_error_message(EmptyPathError("drag_mouse")),
            "Operation failed: [EmptyPathError] path is empty for drag_mouse",
        )

    def test_describe_error(self):
        self.assertEqual(ErrorFormatter.describe_error(ValueError("bad")), "bad")
        self.assertEqual(ErrorFormatter.describe_error(KeyError("x")), "KeyError: 'x'")
        self.assertEqual(ErrorFormatter.describe_error(RuntimeError()), "no details")

    def test_create_error_preview(self):
        self.assertEqual(ErrorFormatter.create_error_preview("short"), "short")
        preview = ErrorFormatter.create_error_preview("x" * 300)
        self.assertEqual(len(preview), 203)
        self.assertTrue(preview.endswith("..."))


def access_record(path, status="200"):
    message = f'127.0.0.1 - - [18/Oct/2026 10:00:00] "GET {path} HTTP/1.1" {status} -'
    return logging.LogRecord("werkzeug", logging.INFO, __file__, 1, message, (), None)


class TestPollingRequestAggregator(unittest.TestCase):
    """Polled endpoints are summarised, everything else passes."""

    def test_polled_path_suppressed_until_flush(self):
        aggregator = PollingRequestAggregator(flush_interval=3600)
        self.assertFalse(aggregator.filter(access_record("/health")))
        self.assertEqual(aggregator.counts, {("GET", "/health", "200"): 1})

    def test_flush_emits_summary(self):
        aggregator = PollingRequestAggregator(flush_interval=0)
        record = access_record("/capabilities")
        self.assertTrue(aggregator.filter(record))
        self.assertIn("[POLL-SUMMARY] GET /capabilities 200 x1", record.getMessage())
        self.assertEqual(aggregator.counts, {})

    def test_other_paths_pass(self):
        aggregator = PollingRequestAggregator(flush_interval=3600)
        self.assertTrue(aggregator.filter(access_record("/agent")))

    def test_non_werkzeug_records_pass(self):
        aggregator = PollingRequestAggregator(flush_interval=3600)
        record = logging.LogRecord("agents", logging.INFO, __file__, 1, "GET /health", (), None)
        self.assertTrue(aggregator.filter(record))


if __name__ == '__main__':
    unittest.main()
