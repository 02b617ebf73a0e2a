import logging

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def get_logger(name:str, label:str, level="INFO") -> logging.Logger:
    """Fetch (or build on first use) the logger that reports under `label` for module `name`.

    Each (name, label) pair maps to exactly one logger with exactly one stream handler, so calling this repeatedly
    from the same module never duplicates output.

    :param name: usually the calling module's __name__
    :type name: str

    :param label: a short tag for the kind of messages routed through this logger, e.g. "project info"
    :type label: str

    :param level: a logging level name or number
    :type level: str|int
    """
    logger = logging.getLogger(f"{name}.{label.replace(' ','_')}")
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        logger.addHandler(handler)
        logger.propagate = False
    return logger
