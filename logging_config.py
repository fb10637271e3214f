import logging
import sys

logger = logging.getLogger("objectstore")


def setup_logging(level: str = "INFO"):
    """
    Configures the root logger for the application.
    Called once at startup from main.py.
    """
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s - %(name)s - [%(levelname)s] - %(message)s",
        stream=sys.stdout,
    )
    # Silence noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("multipart").setLevel(logging.WARNING)
