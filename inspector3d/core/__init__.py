from .config import load_config, get_config, reset_config
from .event_bus import EventBus
from .exceptions import Inspector3DError, ConfigError, ValidationError, NotFoundError
from .logger import get_logger, get_entity_logger, setup_logging

__all__ = [
    "load_config", "get_config", "reset_config",
    "EventBus",
    "Inspector3DError", "ConfigError", "ValidationError", "NotFoundError",
    "get_logger", "get_entity_logger", "setup_logging",
]
