import logging

DEFAULT_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

_handlers: list[logging.Handler] = []


def setup_logging(
    level: int | str = logging.INFO, log_file: str | None = None, fmt: str = DEFAULT_FORMAT
) -> logging.Logger:
    """
    Attach a console handler, and optionally a file handler, to the ``batchflow`` logger.

    Calling it again replaces the handlers installed by the previous call.

    :param level: Logging level for the package logger
    :type level: int | str
    :param log_file: Optional path of a file to append records to
    :type log_file: str | None
    :param fmt: Record format string
    :type fmt: str
    :returns: The configured package logger
    :rtype: logging.Logger
    """
    logger = logging.getLogger("batchflow")
    for handler in _handlers:
        logger.removeHandler(handler)
        handler.close()
    _handlers.clear()

    formatter = logging.Formatter(fmt)
    _handlers.append(logging.StreamHandler())
    if log_file:
        _handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in _handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    logger.setLevel(level.upper() if isinstance(level, str) else level)
    return logger
