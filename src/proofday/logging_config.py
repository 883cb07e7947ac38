# src/proofday/logging_config.py
"""
Logging configuration for the proofday service.

Reads the ``[logging]`` section of the proofday configuration and sets up:

- A console handler gated by :class:`DisplayFilter`. With
  ``console_enabled=False`` (the default) only records logged with
  ``extra={"display": True}`` reach the console, so startup banners stay
  visible while per-request chatter does not.
- An optional file handler, either one timestamped file per run
  (``file_mode="per_run"``) or one rotating file (``file_mode="single"``).
- Per-component level overrides (``components`` table).

Usage:
    from proofday.logging_config import configure_logging, log_display

    configure_logging(app_name="proofday-api", config=config.logging)

    logger = logging.getLogger("proofday.startup")
    log_display(logger, logging.INFO, "Listening on %s:%d", host, port)
"""

import logging
import os
import sys
from datetime import datetime
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Any, Optional

DEFAULT_LOGGING_CONFIG: dict[str, Any] = {
    "console_enabled": False,
    "console_level": "WARNING",
    "console_format": "%(levelname)s - %(message)s",
    "file_enabled": False,
    "file_level": "DEBUG",
    "file_directory": "~/.local/share/proofday/logs",
    "file_mode": "per_run",
    "file_name_pattern": "{app}_{timestamp:%Y%m%d_%H%M%S}.log",
    "file_single_name": "{app}.log",
    "file_format": "%(asctime)s [%(levelname)-8s] %(name)-30s - %(message)s (%(filename)s:%(lineno)d)",
    "rotation_max_bytes": 10 * 1024 * 1024,  # 10 MB
    "rotation_backup_count": 5,
    "display_min_level": "INFO",
    "components": {
        "proofday": "INFO",
        "uvicorn": "INFO",
        "aiohttp": "WARNING",
        "httpx": "WARNING",
        "httpcore": "WARNING",
        "openai": "WARNING",
        "web3": "WARNING",
        "asyncio": "WARNING",
    },
}


def _level(value: Any, default: int) -> int:
    if isinstance(value, int):
        return value
    resolved = logging.getLevelName(str(value).upper())
    return resolved if isinstance(resolved, int) else default


class DisplayFilter(logging.Filter):
    """
    Decides which records pass to the console handler.

    When the console is globally enabled everything passes and the handler
    level does the filtering. Otherwise only records carrying
    ``display=True`` at or above ``display_min_level`` pass.
    """

    def __init__(self, console_globally_enabled: bool = False,
                 display_min_level: int = logging.INFO) -> None:
        super().__init__()
        self.console_globally_enabled = console_globally_enabled
        self.display_min_level = display_min_level

    def filter(self, record: logging.LogRecord) -> bool:
        if self.console_globally_enabled:
            return True
        if getattr(record, "display", False):
            return record.levelno >= self.display_min_level
        return False


class LoggingManager:
    """
    Process-wide logging setup. Configures the root logger at most once
    unless ``force_reconfigure`` is passed.
    """

    _instance: Optional["LoggingManager"] = None
    _configured: bool = False
    _log_file_path: Optional[Path] = None

    def __init__(self) -> None:
        self._console_handler: Optional[logging.Handler] = None
        self._file_handler: Optional[logging.Handler] = None

    @classmethod
    def get_instance(cls) -> "LoggingManager":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @classmethod
    def is_configured(cls) -> bool:
        return cls._configured

    def configure(self, app_name: str = "proofday", config: Optional[dict[str, Any]] = None,
                  force_reconfigure: bool = False) -> Optional[Path]:
        """
        Configure logging.

        Args:
            app_name: Used in the log file name.
            config: The ``[logging]`` section; merged over DEFAULT_LOGGING_CONFIG.
            force_reconfigure: Reconfigure even if already configured.

        Returns:
            The log file path when file logging is enabled, else None.
        """
        if LoggingManager._configured and not force_reconfigure:
            return LoggingManager._log_file_path

        log_config = {**DEFAULT_LOGGING_CONFIG, **(config or {})}

        root_logger = logging.getLogger()
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)
            handler.close()
        root_logger.setLevel(logging.DEBUG)

        console_enabled = bool(log_config.get("console_enabled", False))
        display_filter = DisplayFilter(
            console_globally_enabled=console_enabled,
            display_min_level=_level(log_config.get("display_min_level"), logging.INFO),
        )
        self._console_handler = logging.StreamHandler(sys.stderr)
        # When the console is "off" the filter is the only gate.
        self._console_handler.setLevel(
            _level(log_config.get("console_level"), logging.WARNING) if console_enabled else logging.DEBUG
        )
        self._console_handler.setFormatter(logging.Formatter(log_config["console_format"]))
        self._console_handler.addFilter(display_filter)
        root_logger.addHandler(self._console_handler)

        self._file_handler = None
        log_file_path = None
        if log_config.get("file_enabled"):
            self._file_handler, log_file_path = self._create_file_handler(log_config, app_name)
            if self._file_handler:
                root_logger.addHandler(self._file_handler)

        for component_name, level_str in log_config.get("components", {}).items():
            logging.getLogger(component_name).setLevel(_level(level_str, logging.INFO))

        LoggingManager._configured = True
        LoggingManager._log_file_path = log_file_path
        if log_file_path:
            logging.getLogger(__name__).debug("Logging configured. Log file: %s", log_file_path)
        return log_file_path

    def _create_file_handler(self, config: dict[str, Any], app_name: str
                             ) -> tuple[Optional[logging.Handler], Optional[Path]]:
        log_dir = Path(os.path.expanduser(config["file_directory"]))
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            sys.stderr.write(f"Warning: Cannot create log directory {log_dir}: {e}\n")
            return None, None

        handler: logging.Handler
        try:
            if config.get("file_mode") == "single":
                try:
                    filename = config["file_single_name"].format(app=app_name)
                except (KeyError, ValueError):
                    filename = f"{app_name}.log"
                log_file_path = log_dir / filename
                handler = RotatingFileHandler(
                    log_file_path,
                    maxBytes=config["rotation_max_bytes"],
                    backupCount=config["rotation_backup_count"],
                    encoding="utf-8",
                )
            else:
                timestamp = datetime.now()
                try:
                    filename = config["file_name_pattern"].format(app=app_name, timestamp=timestamp)
                except (KeyError, ValueError):
                    filename = f"{app_name}_{timestamp.strftime('%Y%m%d_%H%M%S')}.log"
                log_file_path = log_dir / filename
                handler = logging.FileHandler(log_file_path, encoding="utf-8")
        except OSError as e:
            sys.stderr.write(f"Warning: Cannot create log file in {log_dir}: {e}\n")
            return None, None

        handler.setLevel(_level(config.get("file_level"), logging.DEBUG))
        handler.setFormatter(logging.Formatter(config["file_format"]))
        return handler, log_file_path

    def set_component_level(self, component: str, level: str | int) -> None:
        logging.getLogger(component).setLevel(_level(level, logging.INFO))


def configure_logging(app_name: str = "proofday", config: Optional[dict[str, Any]] = None,
                      force_reconfigure: bool = False) -> Optional[Path]:
    """Configure logging for the process. See :meth:`LoggingManager.configure`."""
    return LoggingManager.get_instance().configure(
        app_name=app_name, config=config, force_reconfigure=force_reconfigure
    )


def log_display(logger: logging.Logger, level: int, msg: str, *args: Any, **kwargs: Any) -> None:
    """Log a record that reaches the console even when console logging is off."""
    extra = kwargs.pop("extra", None) or {}
    extra["display"] = True
    kwargs["extra"] = extra
    logger.log(level, msg, *args, **kwargs)


def set_component_level(component: str, level: str | int) -> None:
    """Change a specific component's log level at runtime."""
    LoggingManager.get_instance().set_component_level(component, level)
