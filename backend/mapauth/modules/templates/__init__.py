"""Owner-scoped map template registry with per-template locking."""

from mapauth.modules.templates.locks import TemplateLock, hold_template_lock
from mapauth.modules.templates.service import TEMPLATE_VERSION, TemplateMaps

__all__ = ["TEMPLATE_VERSION", "TemplateLock", "TemplateMaps", "hold_template_lock"]
