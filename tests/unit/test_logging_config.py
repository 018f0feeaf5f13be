"""
Unit tests for logging setup.
"""

import sys

from loguru import logger

from app.config.settings import Settings
from app.utils.logging_config import setup_logging


def test_setup_logging_writes_file(tmp_path):
    """Test file sink receives ledger log lines."""
    log_file = tmp_path / "ledger.log"
    settings = Settings(
        _env_file=None,
        database_url="sqlite+aiosqlite:///:memory:",
        environment="test",
        log_file=str(log_file),
        log_level="info",
    )

    try:
        setup_logging(settings)
        logger.info("Credited 1 TRX to user 42")
    finally:
        logger.remove()
        logger.add(sys.stderr)

    content = log_file.read_text()
    assert "Logging configured" in content
    assert "Credited 1 TRX to user 42" in content
