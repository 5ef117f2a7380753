import logging

PACKAGE_LOGGER = "hospital_quality"
LOG_FORMAT = "[%(asctime)s] %(levelname)s - %(name)s: %(message)s"


def _package_logger() -> logging.Logger:
    # single handler on the package logger; module loggers propagate to it
    logger = logging.getLogger(PACKAGE_LOGGER)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
        logger.addHandler(handler)
        logger.setLevel(logging.INFO)
        logger.propagate = False
    return logger


def get_logger(name: str) -> logging.Logger:
    _package_logger()
    return logging.getLogger(f"{PACKAGE_LOGGER}.{name}")


def set_level(level: int) -> None:
    """Change verbosity for every hospital_quality logger at once."""
    _package_logger().setLevel(level)
