"""
Attachment reference stored alongside a conversation message.

Attachments point at externally stored files by opaque storage identifier.
Documents may carry text extracted at upload time, which lets models without
multimodal support still see their content.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

AttachmentType = Literal["image", "pdf", "text", "document", "audio", "video", "file"]


@dataclass
class Attachment:
    """A stored file attached to a message.

    Attributes:
        type: Coarse media category.
        storage_id: Opaque reference resolved by the attachment store.
        name: Original file name (used in placeholders).
        mime_type: Media type recorded at upload, when known.
        extracted_text: Text extracted from documents at upload, when available.
        size: Size in bytes, informative only.
    """

    type: AttachmentType
    storage_id: str
    name: str
    mime_type: Optional[str] = None
    extracted_text: Optional[str] = None
    size: Optional[int] = None


__all__ = ["Attachment", "AttachmentType"]
