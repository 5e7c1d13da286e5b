"""ModelCatalog Protocol (single-class module)."""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from ..models import ModelCapabilities


@runtime_checkable
class ModelCatalog(Protocol):
    """Static capability/pricing metadata per model id.

    Unknown models must still yield a capabilities row (with defaults) rather
    than raising.
    """

    def get_model_info(self, model_id: str) -> ModelCapabilities:  # pragma: no cover - interface
        ...


__all__ = ["ModelCatalog"]
