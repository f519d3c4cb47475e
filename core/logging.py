import logging

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def setup_logging(level: str = "INFO") -> None:
    """Configure the root logger once for the process."""
    logging.basicConfig(level=level.upper(), format=LOG_FORMAT)

    # Keep third-party chatter down
    for name in ("sqlalchemy.engine", "celery", "uvicorn.access"):
        logging.getLogger(name).setLevel(logging.WARNING)
