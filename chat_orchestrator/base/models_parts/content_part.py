"""
Typed content part model for multimodal messages.

Defines the ``ContentPart`` dataclass and the ``ContentPartType`` literal. A
message's content is either a plain string or an ordered list of these parts.
Image and file parts carry either a fetchable URL or an opaque storage
reference; the message normalizer resolves references before submission.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Literal, Mapping, Optional

ContentPartType = Literal["text", "image", "file"]


@dataclass
class ContentPart:
    """A single piece of message content.

    Attributes:
        type: ``"text"``, ``"image"`` or ``"file"``.
        text: Text payload for text parts.
        image: URL or storage reference for image parts.
        data: URL or storage reference for file parts.
        mime_type: Media type for file parts, when known.
    """

    type: ContentPartType
    text: Optional[str] = None
    image: Optional[str] = None
    data: Optional[str] = None
    mime_type: Optional[str] = None

    @classmethod
    def text_part(cls, text: str) -> "ContentPart":
        return cls(type="text", text=text)

    @property
    def reference(self) -> Optional[str]:
        """The URL or storage reference carried by an image/file part."""
        if self.type == "image":
            return self.image
        if self.type == "file":
            return self.data
        return None

    def to_dict(self) -> Dict[str, Any]:
        """Return the provider-ready wire shape (``mimeType`` spelled camelCase)."""
        if self.type == "text":
            return {"type": "text", "text": self.text or ""}
        if self.type == "image":
            return {"type": "image", "image": self.image}
        out: Dict[str, Any] = {"type": "file", "data": self.data}
        if self.mime_type:
            out["mimeType"] = self.mime_type
        return out

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "ContentPart":
        """Build a part from its wire shape; ``file`` is accepted as an alias of ``data``."""
        kind = raw.get("type")
        if kind == "image":
            return cls(type="image", image=raw.get("image"))
        if kind == "file":
            return cls(
                type="file",
                data=raw.get("data", raw.get("file")),
                mime_type=raw.get("mimeType", raw.get("mime_type")),
            )
        return cls(type="text", text=raw.get("text") or "")


__all__ = ["ContentPart", "ContentPartType"]
