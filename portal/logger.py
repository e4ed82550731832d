import logging
import sys

from portal.config import LOG_LEVEL


def configure_logging(level: str = LOG_LEVEL) -> None:
    """
    Configure logging for the whole portal.
    Call this once before the first Streamlit render.
    """
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stdout)],
    )
