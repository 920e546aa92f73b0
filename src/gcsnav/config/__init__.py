"""Public config exports for gcsnav."""

from __future__ import annotations

from .settings import DEFAULT_SCOPES, ProviderSettings

__all__ = ["DEFAULT_SCOPES", "ProviderSettings"]
