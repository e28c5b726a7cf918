"""
Configuration module for the JobFlow MCP Server.

Provides centralized configuration management with support for:
- Environment variables
- Default values
- Store selection (local SQLite or remote REST backend)
- Logging configuration
"""

import logging
import os
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file at project root
_env_path = Path(__file__).resolve().parent / ".env"
load_dotenv(dotenv_path=_env_path)

STORE_SQLITE = "sqlite"
STORE_REST = "rest"
SUPPORTED_STORES = (STORE_SQLITE, STORE_REST)


def _parse_bool(env_var: str, default: bool) -> bool:
    """Parse a boolean value from an environment variable."""
    value = os.getenv(env_var)
    if value is None:
        return default
    return value.lower() in ("true", "1", "t", "y", "yes")


def _first_env(*names: str) -> Optional[str]:
    """Return the first non-empty environment variable among ``names``."""
    for name in names:
        value = os.getenv(name)
        if value:
            return value
    return None


class Config:
    """
    Configuration class for MCP server settings.

    Supports configuration via environment variables (and .env file) with sensible defaults.
    Relative paths are resolved against the project root.
    """

    def __init__(self):
        """Initialize configuration from environment variables and defaults."""
        self._repo_root = Path(__file__).resolve().parent

        # Store selection
        self.store_backend = os.getenv("JOBFLOW_STORE", STORE_SQLITE).strip().lower()

        # SQLite store
        self.db_path = self._resolve_db_path()

        # REST store; SUPABASE_* names are accepted for existing deployments
        self.rest_url = _first_env("JOBFLOW_REST_URL", "SUPABASE_URL")
        self.rest_key = _first_env("JOBFLOW_REST_KEY", "SUPABASE_ANON_KEY")
        self.rest_timeout = float(os.getenv("JOBFLOW_REST_TIMEOUT", "10"))

        # Default assignee filter for list_jobs
        self.user_id = os.getenv("JOBFLOW_USER_ID") or None

        # Re-fetch the job after writes so responses show stored state
        self.refresh_after_write = _parse_bool("JOBFLOW_REFRESH_AFTER_WRITE", True)

        # Logging configuration
        self.log_level = os.getenv("JOBFLOW_LOG_LEVEL", "INFO").upper()
        self.log_file = self._resolve_log_path()

        # Server configuration
        self.server_name = os.getenv("JOBFLOW_SERVER_NAME", "jobflow-mcp-server")

    def _resolve_db_path(self) -> Path:
        """
        Resolve the database path from environment or default.

        Resolution order:
        1. JOBFLOW_DB environment variable (absolute or relative)
        2. JOBFLOW_ROOT/data/jobflow.db
        3. Default: <repo_root>/data/jobflow.db

        Returns:
            Resolved absolute Path to database
        """
        db_env = os.getenv("JOBFLOW_DB")
        if db_env:
            db_path = Path(db_env)
            if db_path.is_absolute():
                return db_path
            return self._repo_root / db_path

        root_env = os.getenv("JOBFLOW_ROOT")
        if root_env:
            return Path(root_env) / "data" / "jobflow.db"

        return self._repo_root / "data" / "jobflow.db"

    def _resolve_log_path(self) -> Optional[Path]:
        """
        Resolve the log file path from environment.

        If JOBFLOW_LOG_FILE is set, logs will be written to that file.
        Otherwise, logs go to stderr only.
        """
        log_env = os.getenv("JOBFLOW_LOG_FILE")
        if not log_env:
            return None

        log_path = Path(log_env)
        if log_path.is_absolute():
            return log_path
        return self._repo_root / log_path

    def setup_logging(self):
        """
        Configure logging based on configuration settings.

        Sets up logging to stderr and optionally to a file.
        Log level is controlled by JOBFLOW_LOG_LEVEL.
        """
        numeric_level = getattr(logging, self.log_level, logging.INFO)

        formatter = logging.Formatter(
            fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%Y-%m-%d %H:%M:%S"
        )

        root_logger = logging.getLogger()
        root_logger.setLevel(numeric_level)

        # Remove existing handlers to avoid duplicates
        root_logger.handlers.clear()

        stderr_handler = logging.StreamHandler()
        stderr_handler.setLevel(numeric_level)
        stderr_handler.setFormatter(formatter)
        root_logger.addHandler(stderr_handler)

        if self.log_file:
            self.log_file.parent.mkdir(parents=True, exist_ok=True)

            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(numeric_level)
            file_handler.setFormatter(formatter)
            root_logger.addHandler(file_handler)

            logging.info(f"Logging to file: {self.log_file}")

        logging.info(f"Log level set to: {self.log_level}")
        logging.info(f"Store backend: {self.store_backend}")
        if self.store_backend == STORE_SQLITE:
            logging.info(f"Database path: {self.db_path}")
        else:
            logging.info(f"REST endpoint: {self.rest_url}")

    def get_db_path_str(self) -> str:
        """Database path as string for the SQLite store."""
        return str(self.db_path)

    def validate(self) -> list[str]:
        """
        Validate configuration and return any warnings.

        Returns:
            List of warning messages (empty if all valid)
        """
        warnings = []

        if self.store_backend not in SUPPORTED_STORES:
            warnings.append(
                f"Unknown store backend '{self.store_backend}'. "
                f"Expected one of: {', '.join(SUPPORTED_STORES)}."
            )

        if self.store_backend == STORE_SQLITE and not self.db_path.exists():
            warnings.append(
                f"Database file not found: {self.db_path}. "
                "The server will start but tools will fail until the database is created."
            )

        if self.store_backend == STORE_REST:
            if not self.rest_url:
                warnings.append("REST store selected but JOBFLOW_REST_URL is not set.")
            if not self.rest_key:
                warnings.append("REST store selected but JOBFLOW_REST_KEY is not set.")

        if self.log_file:
            log_dir = self.log_file.parent
            if not log_dir.exists():
                try:
                    log_dir.mkdir(parents=True, exist_ok=True)
                except OSError as e:
                    warnings.append(f"Cannot create log directory {log_dir}: {e}")
            elif not os.access(log_dir, os.W_OK):
                warnings.append(f"Log directory not writable: {log_dir}")

        return warnings


# Global configuration instance
config = Config()


def get_config() -> Config:
    """
    Get the global configuration instance.

    Returns:
        Global Config instance
    """
    return config
