import os
from typing import Optional

from services.common.core.logging_config import setup_logging as common_setup_logging

DEFAULT_LOG_CONFIG_PATH = os.path.join(
    os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "resources", "gateway_log.yml"
)


def setup_logging(config_path: Optional[str] = None, log_level: Optional[str] = None) -> None:
    """
    Load the YAML config and initialize logging.
    An empty path selects the packaged gateway_log.yml.
    """
    common_setup_logging(config_path or DEFAULT_LOG_CONFIG_PATH, log_level)
