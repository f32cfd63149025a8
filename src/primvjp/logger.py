import logging
import os


def get_primvjp_logger(name: str = "primvjp"):
    logger = logging.getLogger(name)
    root = logging.getLogger("primvjp")
    if not root.hasHandlers():
        handler = logging.StreamHandler()
        formatter = logging.Formatter('[%(asctime)s][%(levelname)s][%(name)s] %(message)s')
        handler.setFormatter(formatter)
        root.addHandler(handler)
    level_name = os.getenv("PRIMVJP_LOG_LEVEL", "WARNING").upper()
    level = getattr(logging, level_name, logging.WARNING)
    root.setLevel(level)
    return logger
