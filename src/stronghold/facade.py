"""Convenience save/load that infer the application id from the calling package."""
from __future__ import annotations

from typing import Any, Optional

from . import store
from .codec import Info
from .identity import infer_app_id

__all__ = ["save", "load"]


def save(resource_name: str, value: Any, *, app_id: Optional[str] = None, type_: Any = None) -> Info:
    """Save ``value`` under the caller's application id. See :func:`stronghold.store.save`."""
    app_id = app_id or infer_app_id(stacklevel=2)
    return store.save(app_id, resource_name, value, type_)


def load(resource_name: str, type_: Any = Any, *, app_id: Optional[str] = None) -> Any:
    """Load a value saved under the caller's application id. See :func:`stronghold.store.load`."""
    app_id = app_id or infer_app_id(stacklevel=2)
    return store.load(app_id, resource_name, type_)
