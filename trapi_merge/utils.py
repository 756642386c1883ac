"""General utilities."""
import logging.config
from typing import Optional

import yaml

from trapi_merge.config import settings


def is_absent(value) -> bool:
    """None, empty string and empty collections all count as absent."""
    if value is None:
        return True
    if isinstance(value, (str, list, dict, tuple, set)):
        return len(value) == 0
    return False


def setup_logging(path: Optional[str] = None):
    """Set up logging."""
    with open(path or settings.logging_config, "r") as stream:
        config = yaml.load(stream.read(), Loader=yaml.SafeLoader)
    logging.config.dictConfig(config)
