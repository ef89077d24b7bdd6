"""Shared test fixtures and configuration for pytest.

Puts backend/ (application modules) and backend/tests/ (shared fakes such
as desktop_fakes) on sys.path.
"""

import os
import sys
import tempfile
from pathlib import Path

tests_dir = Path(__file__).resolve().parent
backend_dir = tests_dir.parent
if str(backend_dir) not in sys.path:
    sys.path.insert(0, str(backend_dir))
if str(tests_dir) not in sys.path:
    sys.path.append(str(tests_dir))

# Keep test runs from writing into the working directory's logs/
os.environ.setdefault("GUI_AGENT_LOG_DIR", tempfile.mkdtemp(prefix="gui_agent_test_logs_"))


def pytest_configure(config):
    """Register custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: mark test as a unit test"
    )
    config.addinivalue_line(
        "markers", "integration: mark test as an integration test"
    )
    config.addinivalue_line(
        "markers", "slow: mark test as slow running"
    )
