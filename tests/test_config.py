"""
Unit tests for configuration module.

Tests configuration loading, path resolution, store selection and validation.
"""

import logging
import os
from pathlib import Path
from unittest.mock import patch

from config import Config


class TestConfig:
    """Test suite for Config class."""

    def test_default_configuration(self):
        """Defaults apply when no environment variables are set."""
        with patch.dict(os.environ, {}, clear=True):
            config = Config()

            assert config.store_backend == "sqlite"
            assert config.log_level == "INFO"
            assert config.log_file is None
            assert config.server_name == "jobflow-mcp-server"
            assert config.user_id is None
            assert config.refresh_after_write is True
            assert config.rest_timeout == 10.0
            assert config._repo_root.is_dir()

    def test_db_path_from_env_absolute(self):
        with patch.dict(os.environ, {"JOBFLOW_DB": "/absolute/path/jobflow.db"}, clear=True):
            assert str(Config().db_path) == "/absolute/path/jobflow.db"

    def test_db_path_from_env_relative(self):
        with patch.dict(os.environ, {"JOBFLOW_DB": "custom/jobs.db"}, clear=True):
            config = Config()
            assert config.db_path == config._repo_root / "custom" / "jobs.db"

    def test_db_path_from_root(self):
        with patch.dict(os.environ, {"JOBFLOW_ROOT": "/opt/jobflow"}, clear=True):
            assert Config().db_path == Path("/opt/jobflow") / "data" / "jobflow.db"

    def test_db_path_priority(self):
        """JOBFLOW_DB wins over JOBFLOW_ROOT."""
        with patch.dict(
            os.environ, {"JOBFLOW_DB": "/custom/db.db", "JOBFLOW_ROOT": "/opt/jobflow"}, clear=True
        ):
            assert str(Config().db_path) == "/custom/db.db"

    def test_rest_settings(self):
        with patch.dict(
            os.environ,
            {
                "JOBFLOW_STORE": "REST",
                "JOBFLOW_REST_URL": "https://p.example.co",
                "JOBFLOW_REST_KEY": "key",
                "JOBFLOW_REST_TIMEOUT": "2.5",
            },
            clear=True,
        ):
            config = Config()
            assert config.store_backend == "rest"
            assert config.rest_url == "https://p.example.co"
            assert config.rest_key == "key"
            assert config.rest_timeout == 2.5

    def test_supabase_fallback_names(self):
        with patch.dict(
            os.environ,
            {"SUPABASE_URL": "https://s.example.co", "SUPABASE_ANON_KEY": "anon"},
            clear=True,
        ):
            config = Config()
            assert config.rest_url == "https://s.example.co"
            assert config.rest_key == "anon"

    def test_refresh_after_write_false(self):
        with patch.dict(os.environ, {"JOBFLOW_REFRESH_AFTER_WRITE": "no"}, clear=True):
            assert Config().refresh_after_write is False

    def test_log_level_case_insensitive(self):
        with patch.dict(os.environ, {"JOBFLOW_LOG_LEVEL": "debug"}, clear=True):
            assert Config().log_level == "DEBUG"

    def test_log_file_relative(self):
        with patch.dict(os.environ, {"JOBFLOW_LOG_FILE": "logs/server.log"}, clear=True):
            config = Config()
            assert config.log_file == config._repo_root / "logs" / "server.log"

    def test_get_db_path_str(self):
        with patch.dict(os.environ, {"JOBFLOW_DB": "/tmp/j.db"}, clear=True):
            assert Config().get_db_path_str() == "/tmp/j.db"


class TestConfigValidation:
    """Tests for Config.validate()."""

    def test_missing_database_warns(self, tmp_path):
        with patch.dict(os.environ, {"JOBFLOW_DB": str(tmp_path / "none.db")}, clear=True):
            warnings = Config().validate()
        assert any("Database file not found" in w for w in warnings)

    def test_existing_database_no_warnings(self, db_path):
        with patch.dict(os.environ, {"JOBFLOW_DB": str(db_path)}, clear=True):
            assert Config().validate() == []

    def test_rest_without_credentials(self):
        with patch.dict(os.environ, {"JOBFLOW_STORE": "rest"}, clear=True):
            warnings = Config().validate()
        assert len(warnings) == 2

    def test_unknown_backend(self, db_path):
        with patch.dict(
            os.environ, {"JOBFLOW_STORE": "redis", "JOBFLOW_DB": str(db_path)}, clear=True
        ):
            warnings = Config().validate()
        assert warnings == ["Unknown store backend 'redis'. Expected one of: sqlite, rest."]


class TestSetupLogging:
    """Tests for Config.setup_logging()."""

    def test_log_file_created(self, tmp_path):
        log_path = tmp_path / "logs" / "server.log"
        root_logger = logging.getLogger()
        saved_handlers = list(root_logger.handlers)
        saved_level = root_logger.level

        try:
            with patch.dict(
                os.environ,
                {"JOBFLOW_LOG_FILE": str(log_path), "JOBFLOW_LOG_LEVEL": "WARNING"},
                clear=True,
            ):
                Config().setup_logging()

            assert root_logger.level == logging.WARNING
            assert log_path.parent.is_dir()
            assert len(root_logger.handlers) == 2
        finally:
            for handler in root_logger.handlers:
                handler.close()
            root_logger.handlers[:] = saved_handlers
            root_logger.setLevel(saved_level)
