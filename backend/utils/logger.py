# status: complete

import logging
import os
import re
import threading
import time
from pathlib import Path

LOG_FORMAT = '%(asctime)s | %(levelname)s | %(name)s | %(message)s'

_ACCESS_LINE = re.compile(r'^(\S+)\s+-\s+-\s+\[.+?\]\s+"(\w+)\s+(\S+)\s+HTTP/[\d.]+"\s+(\d+)')


class PollingRequestAggregator(logging.Filter):
    """
    Collapses werkzeug access lines for endpoints that clients poll
    (health checks, capability probes) into periodic summaries.
    Every other record passes through untouched.
    """

    def __init__(self, polled_paths=("/health", "/capabilities"), flush_interval=60):
        super().__init__()
        self.polled_paths = set(polled_paths)
        self.flush_interval = flush_interval
        self.counts = {}
        self.last_flush = time.time()
        self.lock = threading.Lock()

    def filter(self, record):
        if record.name != 'werkzeug' or record.levelno != logging.INFO:
            return True

        match = _ACCESS_LINE.match(record.getMessage())
        if not match:
            return True

        method, path, status = match.group(2), match.group(3), match.group(4)
        if path not in self.polled_paths:
            return True

        with self.lock:
            now = time.time()
            key = (method, path, status)
            self.counts[key] = self.counts.get(key, 0) + 1

            if now - self.last_flush < self.flush_interval:
                return False

            summary = ", ".join(f"{m} {p} {s} x{n}" for (m, p, s), n in sorted(self.counts.items()))
            self.counts.clear()
            self.last_flush = now

        record.msg = f"[POLL-SUMMARY] {summary} over the last {self.flush_interval}s"
        record.args = ()
        return True


_configured = False
_configure_lock = threading.Lock()


def setup_logger(log_dir=None, level=None):
    """Configure root logging once: logs/gui_agent.log plus stderr."""
    global _configured

    with _configure_lock:
        if _configured:
            return

        log_dir = Path(log_dir or os.getenv("GUI_AGENT_LOG_DIR", "logs"))
        level_name = (level or os.getenv("GUI_AGENT_LOG_LEVEL", "INFO")).upper()
        log_level = getattr(logging, level_name, logging.INFO)

        handlers = [logging.StreamHandler()]
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            handlers.append(logging.FileHandler(log_dir / "gui_agent.log", encoding='utf-8'))
        except OSError as e:
            # Read-only working directory: keep logging to stderr only
            logging.getLogger(__name__).warning(f"File logging disabled ({log_dir}): {e}")

        aggregator = PollingRequestAggregator()
        for handler in handlers:
            handler.setLevel(log_level)
            handler.addFilter(aggregator)

        logging.basicConfig(level=log_level, format=LOG_FORMAT, handlers=handlers)
        _configured = True


def get_logger(name):
    """Get logger for a module"""
    return logging.getLogger(name)


setup_logger()
