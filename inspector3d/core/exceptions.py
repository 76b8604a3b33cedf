"""inspector3d exceptions."""


class Inspector3DError(Exception):
    """Base exception for inspector3d."""


class ConfigError(Inspector3DError):
    """Invalid or missing configuration."""


class ValidationError(Inspector3DError):
    """Record metadata rejected (e.g. duplicate datum name, score out of range)."""


class NotFoundError(Inspector3DError):
    """Referenced entity id does not exist."""
