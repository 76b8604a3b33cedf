"""
Logging for the inspector3d.* logger tree.

setup_logging() once at application start; modules call get_logger(). Stores tag lines with
the entity they touch through get_entity_logger(), e.g. "... inspector3d.measurement [M3] Closed".
"""
import logging
import os
from pathlib import Path
from typing import Optional

from .config import ENV_LOG_DIR, ENV_LOG_LEVEL

ROOT_NAME = "inspector3d"
LOG_FILE_NAME = "inspector3d.log"
DEFAULT_FORMAT = "%(asctime)s [%(levelname)s] %(name)s%(entity)s %(message)s"
_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
_configured = False


class Inspector3DFormatter(logging.Formatter):
    """Adds the %(entity)s field; records logged without an entity get an empty tag."""

    def __init__(self, fmt: Optional[str] = None, datefmt: Optional[str] = None):
        super().__init__(fmt=fmt or DEFAULT_FORMAT, datefmt=datefmt or _DATE_FORMAT)

    def format(self, record: logging.LogRecord) -> str:
        if not hasattr(record, "entity"):
            record.entity = ""
        return super().format(record)


class EntityAdapter(logging.LoggerAdapter):
    def process(self, msg, kwargs):
        entity = self.extra.get("entity")
        kwargs["extra"] = {**(kwargs.get("extra") or {}), "entity": f" [{entity}]" if entity else ""}
        return msg, kwargs


def _level_from_env() -> int:
    name = os.environ.get(ENV_LOG_LEVEL, "").strip().upper()
    level = logging.getLevelName(name) if name else logging.INFO
    return level if isinstance(level, int) else logging.INFO


def _attach(root: logging.Logger, handler: logging.Handler, level: int, formatter: logging.Formatter) -> None:
    handler.setLevel(level)
    handler.setFormatter(formatter)
    root.addHandler(handler)


def setup_logging(
    level: Optional[int] = None,
    log_file: Optional[os.PathLike | str] = None,
    format_string: Optional[str] = None,
    use_console: bool = True,
) -> None:
    """
    Configure the inspector3d root logger once. Level defaults to INSPECTOR3D_LOG_LEVEL (else INFO).
    A file handler is added for log_file, or for INSPECTOR3D_LOG_DIR/inspector3d.log when that
    variable is set. Later calls are ignored.
    """
    global _configured
    if _configured:
        return

    root = logging.getLogger(ROOT_NAME)
    level = _level_from_env() if level is None else level
    root.setLevel(level)
    formatter = Inspector3DFormatter(format_string)

    if use_console:
        _attach(root, logging.StreamHandler(), level, formatter)

    target = Path(log_file) if log_file is not None else None
    if target is None and os.environ.get(ENV_LOG_DIR):
        target = Path(os.environ[ENV_LOG_DIR]) / LOG_FILE_NAME
    if target is not None:
        target.parent.mkdir(parents=True, exist_ok=True)
        _attach(root, logging.FileHandler(target, encoding="utf-8"), level, formatter)

    _configured = True


def get_logger(name: str) -> logging.Logger:
    """Logger under inspector3d.*; get_logger("session") -> inspector3d.session."""
    prefix = ROOT_NAME + "."
    return logging.getLogger(name if name.startswith(prefix) else prefix + name)


def get_entity_logger(logger: logging.Logger, entity_id: str) -> EntityAdapter:
    """Adapter tagging each line with entity_id. Wrapping an adapter replaces its tag."""
    base = logger.logger if isinstance(logger, EntityAdapter) else logger
    return EntityAdapter(base, {"entity": entity_id})
