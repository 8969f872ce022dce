import sys
from pathlib import Path

# Ensure the application package root is on sys.path so importing application
# modules (e.g. `modules.message_notifications`) works during pytest
# collection regardless of the invocation directory.
project_root = str(Path(__file__).resolve().parents[1])
if project_root not in sys.path:
    sys.path.insert(0, project_root)

import pytest  # noqa: E402
import structlog  # noqa: E402

from infrastructure.logging import clear_request_context  # noqa: E402


@pytest.fixture(autouse=True)
def _clear_logging_context():
    """Prevent bound logging context from leaking between tests."""
    clear_request_context()
    yield
    clear_request_context()


@pytest.fixture(autouse=True)
def _reset_structlog():
    """Undo configure_logging() calls made by the code under test."""
    yield
    structlog.reset_defaults()
