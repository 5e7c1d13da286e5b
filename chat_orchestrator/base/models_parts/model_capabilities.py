"""
Static model capability metadata.

Rows of the external model catalog. Pricing is expressed in dollars per
million tokens as catalogs publish it; the credit gate converts to per-1K.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class ModelPricing:
    """Dollar price per 1M input/output tokens."""

    input: float
    output: float


@dataclass(frozen=True)
class ModelCapabilities:
    """Capability flags for one model.

    Attributes:
        id: Model identifier.
        provider: Owning provider, ``"unknown"`` when not in any model list.
        supports_tools: Whether function calling may be offered.
        is_multimodal: Whether image/file parts may be sent as-is.
        supports_thinking: Whether native thinking options may be enabled.
        pricing: Optional per-1M pricing; the credit gate falls back to a
            default rate when absent.
    """

    id: str
    provider: str = "unknown"
    supports_tools: bool = True
    is_multimodal: bool = False
    supports_thinking: bool = False
    pricing: Optional[ModelPricing] = None


__all__ = ["ModelCapabilities", "ModelPricing"]
