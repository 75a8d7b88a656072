"""Structured logging with JSON file output and rich terminal formatting."""

import logging
from pathlib import Path
from typing import Any, Dict, Optional, Union

from .log_formatters import _log_context
from .logger_factory import IsolatedLogManager

NAMESPACE = "mutineer"


class LogManager:
    """Central logging configuration backed by an isolated manager."""

    def __init__(self) -> None:
        self._manager = IsolatedLogManager(NAMESPACE)

    def configure(
        self,
        level: Union[int, str] = logging.INFO,
        log_file: Optional[Path] = None,
        enable_json: bool = True,
        enable_console: bool = True,
        console_level: Optional[Union[int, str]] = None,
    ) -> None:
        """Configure logging system. Reconfiguring replaces existing handlers."""
        self._manager.configure(
            level=level,
            log_file=log_file,
            enable_json=enable_json,
            enable_console=enable_console,
            console_level=console_level,
        )

    @property
    def configured(self) -> bool:
        return self._manager.configured

    def get_logger(self, name: str) -> logging.Logger:
        """Get a logger instance."""
        if name.startswith(f"{NAMESPACE}."):
            name = name[len(NAMESPACE) + 1 :]
        return self._manager.create_logger(name)

    def shutdown(self) -> None:
        """Shutdown logging system."""
        self._manager.shutdown()


# Global log manager instance
_log_manager = LogManager()


def configure_logging(**kwargs: Any) -> None:
    """Configure the global logging system."""
    _log_manager.configure(**kwargs)


def get_logger(name: str) -> logging.Logger:
    """Get a logger instance."""
    return _log_manager.get_logger(name)


def shutdown_logging() -> None:
    """Shutdown the logging system."""
    _log_manager.shutdown()


def log_event(logger: logging.Logger, event_type: str, message: str, **kwargs: Any) -> None:
    """Log a structured event with context."""
    logger.info(message, extra={"event_type": event_type, **kwargs})


def log_process_event(
    logger: logging.Logger, event: str, pid: Optional[int] = None, **kwargs: Any
) -> None:
    """Log a process-related event."""
    extra: Dict[str, Any] = {"event_type": "process", "process_event": event}
    if pid is not None:
        extra["pid"] = pid
    extra.update(kwargs)
    logger.info("Process %s %s", pid, event, extra=extra)


def log_test_event(
    logger: logging.Logger, event: str, test_name: Optional[str] = None, **kwargs: Any
) -> None:
    """Log a test-related event."""
    extra: Dict[str, Any] = {"event_type": "test", "test_event": event}
    if test_name is not None:
        extra["test_name"] = test_name
    extra.update(kwargs)
    logger.debug("Test %s %s", test_name, event, extra=extra)


def set_log_context(**kwargs: Any) -> None:
    """Set logging context for current thread."""
    _log_context.set_context(**kwargs)


def get_log_context() -> Dict[str, Any]:
    """Get current logging context."""
    return _log_context.get_context()


def clear_log_context() -> None:
    """Clear current logging context."""
    _log_context.clear_context()


def log_context(**kwargs: Any) -> Any:
    """Context manager for temporary logging context."""
    return _log_context.context(**kwargs)
