"""Tests for the uvicorn logging setup."""

from sessionguard.web.runner import uvicorn_log_config


class TestUvicornLogConfig:
    """Tests for routing uvicorn logs through the service logging."""

    def test_loggers_propagate_to_root(self):
        """Test that uvicorn installs no handlers of its own."""
        config = uvicorn_log_config(debug=False)

        assert config["disable_existing_loggers"] is False
        for logger_config in config["loggers"].values():
            assert logger_config["handlers"] == []
            assert logger_config["propagate"] is True

    def test_access_lines_only_in_debug(self):
        """Test that access logging is quiet outside debug."""
        assert uvicorn_log_config(debug=False)["loggers"]["uvicorn.access"]["level"] == "WARNING"
        assert uvicorn_log_config(debug=True)["loggers"]["uvicorn.access"]["level"] == "DEBUG"
