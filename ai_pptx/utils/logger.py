"""
Logging configuration for AI-PPTX using Logfire.

Falls back to standard Python logging when no LOGFIRE_TOKEN is configured.
"""
from typing import Optional

# Try to configure Logfire once at module import
LOGFIRE_CONFIGURED = False

try:
    import logfire
    from config.settings import get_settings

    settings = get_settings()

    if settings.LOGFIRE_TOKEN:
        try:
            logfire.configure(
                token=settings.LOGFIRE_TOKEN,
                service_name="ai-pptx",
                environment=settings.APP_ENV,
                console=False
            )
            LOGFIRE_CONFIGURED = True
        except Exception:
            # Logfire configuration failed, use standard logging
            LOGFIRE_CONFIGURED = False
    else:
        LOGFIRE_CONFIGURED = False

except Exception:
    # Logfire import/setup failed, use standard logging
    LOGFIRE_CONFIGURED = False


class LogfireLogger:
    """Wrapper to make Logfire work like standard Python logging."""

    def __init__(self, name: str):
        self.name = name

    @staticmethod
    def _attributes(kwargs) -> dict:
        # Logfire takes structured attributes directly, not via extra=
        attributes = dict(kwargs.pop("extra", None) or {})
        kwargs.pop("exc_info", None)
        attributes.update(kwargs)
        return attributes

    def info(self, message, *args, **kwargs):
        if args:
            message = message % args
        logfire.info(f"[{self.name}] {message}", **self._attributes(kwargs))

    def warning(self, message, *args, **kwargs):
        if args:
            message = message % args
        logfire.warn(f"[{self.name}] {message}", **self._attributes(kwargs))

    def error(self, message, *args, **kwargs):
        if args:
            message = message % args
        logfire.error(f"[{self.name}] {message}", **self._attributes(kwargs))

    def debug(self, message, *args, **kwargs):
        if args:
            message = message % args
        logfire.debug(f"[{self.name}] {message}", **self._attributes(kwargs))

    def exception(self, message, *args, **kwargs):
        if args:
            message = message % args
        logfire.error(f"[{self.name}] EXCEPTION: {message}", **self._attributes(kwargs))

    def setLevel(self, level):
        # No-op for compatibility
        pass


class StandardLogger:
    """Standard Python logger when Logfire is not configured."""

    def __init__(self, name: str, level: Optional[str] = None):
        import logging
        import os
        self.logger = logging.getLogger(name)

        # Read LOG_LEVEL from environment, default to INFO
        log_level_str = (level or os.getenv('LOG_LEVEL', 'INFO')).upper()
        log_level = getattr(logging, log_level_str, logging.INFO)
        self.logger.setLevel(log_level)

        # Add console handler if not already present
        if not self.logger.handlers:
            handler = logging.StreamHandler()
            handler.setLevel(log_level)
            formatter = logging.Formatter(
                '[%(levelname)s %(name)s] %(message)s'
            )
            handler.setFormatter(formatter)
            self.logger.addHandler(handler)

    def info(self, message, *args, **kwargs):
        self.logger.info(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def warning(self, message, *args, **kwargs):
        self.logger.warning(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def error(self, message, *args, **kwargs):
        exc_info = kwargs.pop('exc_info', False)
        self.logger.error(message, *args, exc_info=exc_info, **kwargs)

    def debug(self, message, *args, **kwargs):
        self.logger.debug(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def exception(self, message, *args, **kwargs):
        self.logger.exception(message, *args, **{k: v for k, v in kwargs.items() if k != 'exc_info'})

    def setLevel(self, level):
        self.logger.setLevel(level)


def setup_logger(name: str, level: Optional[str] = None):
    """
    Set up a logger using Logfire or standard Python logging if not configured.

    Args:
        name: Logger name (usually __name__)
        level: Logging level (used for standard logger)

    Returns:
        LogfireLogger or StandardLogger instance
    """
    if LOGFIRE_CONFIGURED:
        return LogfireLogger(name)
    else:
        return StandardLogger(name, level)
