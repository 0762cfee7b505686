"""Project logging package.

Contains internal logging utilities (event catalog + ProtocolLogger). Avoid
importing stdlib logging through this package name externally.
"""

from .event_catalog import EVENT_TEMPLATES, reload_event_templates  # noqa: F401
from .logger import ProtocolLogger, logger  # noqa: F401

__all__ = ["ProtocolLogger", "logger", "EVENT_TEMPLATES", "reload_event_templates"]
