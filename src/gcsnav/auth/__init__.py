"""Public auth exports for gcsnav."""

from __future__ import annotations

from .service_factory import ServiceFactory

__all__ = ["ServiceFactory"]
