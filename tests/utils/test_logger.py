"""
Tests for logging setup.
"""

from pagenotes.config import LoggingConfig
from pagenotes.utils.logger import get_logger, setup_logging, setup_logging_from_config


class TestLogging:
    """Tests for setup_logging and get_logger."""

    def test_file_logging_creates_directory(self, tmp_path):
        """Test file logging creates its log directory."""
        log_dir = tmp_path / "logs"

        setup_logging(level="DEBUG", log_to_file=True, log_dir=str(log_dir), serialize=False)
        try:
            get_logger("tests").info("hello")
            assert log_dir.is_dir()
        finally:
            setup_logging(log_to_file=False)

    def test_setup_from_config_section(self, tmp_path):
        """Test a LoggingConfig section is applied as-is."""
        log_dir = tmp_path / "context_logs"
        config = LoggingConfig(level="DEBUG", log_to_file=True, log_dir=str(log_dir))

        setup_logging_from_config(config)
        try:
            get_logger("tests").debug("configured from section")
            assert log_dir.is_dir()
        finally:
            setup_logging(log_to_file=False)

    def test_get_logger_binds_module(self):
        """Test get_logger returns a logger bound to the module name."""
        bound = get_logger("pagenotes.tests")

        assert bound is not None
        bound.debug("bound logger works")
