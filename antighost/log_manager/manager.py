#!/usr/bin/env python3
"""
Centralized Logging Manager for Anti-Ghost-Ping

Provides file-only logging; the console belongs to the report display.
All output goes to log files in $ANTIGHOST_HOME/logs/
"""

import os
import logging
import logging.handlers
from pathlib import Path
from typing import Dict, Optional


def antighost_home() -> Path:
    """Resolve the application directory, respecting ANTIGHOST_HOME."""
    home = os.environ.get('ANTIGHOST_HOME')
    if home:
        return Path(home).expanduser().resolve()
    return Path.home() / '.antighost'


class LoggingManager:
    """
    Manages file-based logging for all Anti-Ghost-Ping components.

    Features:
    - File-only output (no console interference)
    - Component-specific log files
    - Automatic rotation
    - Debug mode support via ANTIGHOST_DEBUG
    """

    _instance = None
    _initialized = False

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __init__(self):
        """Initialize the logging manager (singleton)"""
        if not self._initialized:
            self.log_dir = antighost_home() / 'logs'
            self.debug_mode = os.environ.get('ANTIGHOST_DEBUG', '').lower() in ('1', 'true', 'yes')
            self.loggers: Dict[str, logging.Logger] = {}
            self._initialized = True

            self._ensure_log_directories()
            self._configure_root_logger()

    def _ensure_log_directories(self):
        """Create necessary log directories"""
        for directory in (self.log_dir, self.log_dir / 'stores', self.log_dir / 'transport'):
            directory.mkdir(parents=True, exist_ok=True)

    def _configure_root_logger(self):
        """Keep third-party records off the console"""
        root_logger = logging.getLogger()
        root_logger.setLevel(logging.DEBUG if self.debug_mode else logging.INFO)
        root_logger.addHandler(logging.NullHandler())

    def set_debug(self, enabled: bool):
        """Switch debug mode; affects loggers created afterwards."""
        self.debug_mode = enabled
        level = logging.DEBUG if enabled else logging.INFO
        for logger in self.loggers.values():
            logger.setLevel(level)

    def get_logger(self, name: str, component: Optional[str] = None) -> logging.Logger:
        """
        Get or create a logger for a specific component.

        Args:
            name: Logger name (e.g., 'MentionCache')
            component: Component category ('store', 'transport', None for main)

        Returns:
            Configured logger instance
        """
        logger_key = f"{component}.{name}" if component else name

        if logger_key in self.loggers:
            return self.loggers[logger_key]

        logger = logging.getLogger(f"antighost.{logger_key}")
        logger.setLevel(logging.DEBUG if self.debug_mode else logging.INFO)

        # Remove any inherited handlers
        logger.handlers = []
        logger.propagate = False

        if component == 'store':
            log_file = self.log_dir / 'stores' / f"{name.lower()}.log"
        elif component == 'transport':
            log_file = self.log_dir / 'transport' / f"{name.lower()}.log"
        else:
            log_file = self.log_dir / f"{name.lower()}.log"

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding='utf-8'
        )

        if self.debug_mode:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        else:
            formatter = logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            )
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

        if self.debug_mode:
            debug_handler = logging.handlers.RotatingFileHandler(
                self.log_dir / 'debug.log',
                maxBytes=50 * 1024 * 1024,  # 50MB for debug
                backupCount=3,
                encoding='utf-8'
            )
            debug_handler.setFormatter(logging.Formatter(
                '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d] - %(funcName)s() - %(message)s',
                datefmt='%Y-%m-%d %H:%M:%S'
            ))
            debug_handler.setLevel(logging.DEBUG)
            logger.addHandler(debug_handler)

        error_handler = logging.handlers.RotatingFileHandler(
            self.log_dir / 'error.log',
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        )
        error_handler.setFormatter(logging.Formatter(
            '%(asctime)s - %(name)s - %(levelname)s - [%(filename)s:%(lineno)d]\n%(message)s\n',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        error_handler.setLevel(logging.ERROR)
        logger.addHandler(error_handler)

        self.loggers[logger_key] = logger
        return logger


# Singleton instance
_logging_manager = None


def get_logging_manager() -> LoggingManager:
    """Get the singleton LoggingManager instance"""
    global _logging_manager
    if _logging_manager is None:
        _logging_manager = LoggingManager()
    return _logging_manager


def get_logger(name: str, component: Optional[str] = None) -> logging.Logger:
    """
    Convenience function to get a logger.

    Args:
        name: Logger name
        component: Component type ('store', 'transport', or None)

    Returns:
        Configured logger
    """
    return get_logging_manager().get_logger(name, component)


def configure_logging(debug: Optional[bool] = None) -> LoggingManager:
    """Initialize logging system (called once at startup)"""
    manager = get_logging_manager()
    if debug is not None:
        manager.set_debug(debug)
    return manager
