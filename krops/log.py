import logging

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

_configured = False


def configure_logging(level: str = "INFO") -> None:
    """Configure the root handler once; later calls only adjust the level."""
    global _configured
    if not _configured:
        logging.basicConfig(level=level, format=LOG_FORMAT)
        _configured = True
    logging.getLogger("krops").setLevel(level)
