import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def log_level_value(level: str) -> int:
    """Numeric level for a level name such as "info"; raises ValueError if unknown."""
    value = logging.getLevelNamesMapping().get(level.strip().upper())
    if value is None:
        raise ValueError(f"Unknown log level: {level}")
    return value


def setup_logging(service_name: str, level: str = "INFO") -> logging.Logger:
    """Attach a single console handler to the service's logger.

    Loggers of the service's modules (``order_service.core.resolver`` and so
    on) propagate to it. Calling this again replaces the handler, so building
    several apps in one process does not duplicate log lines.
    """
    logger = logging.getLogger(service_name)
    logger.setLevel(log_level_value(level))

    for handler in logger.handlers[:]:
        logger.removeHandler(handler)

    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logger.addHandler(handler)

    return logger
