from .logger import LOGGER_NAME, Logger, NullLogger, StdLogger, setup_logging

__all__ = ["LOGGER_NAME", "Logger", "NullLogger", "StdLogger", "setup_logging"]
