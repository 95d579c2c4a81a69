import logging
from typing import Optional

from pgxrisk.core.config import get_settings

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def setup_logging(level: Optional[str] = None) -> None:
    """Configure the root logger once; later calls only adjust the level."""
    level_name = (level or get_settings().LOG_LEVEL).upper()
    root = logging.getLogger()

    if not root.handlers:
        handler = logging.StreamHandler()
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)

    root.setLevel(getattr(logging, level_name, logging.INFO))

    # httpx logs every request at INFO
    logging.getLogger("httpx").setLevel(logging.WARNING)
