import logging

LOG_FORMAT = "%(asctime)s | %(levelname)5s | %(name)s | %(message)s"

def setup_logging(level: str | int = "INFO") -> logging.Logger:
    if isinstance(level, str):
        level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=level, format=LOG_FORMAT)
    log = logging.getLogger("chromadetect")
    log.setLevel(level)
    return log
