"""Message normalization for provider submission.

Converts stored conversation history into the part lists model handles
accept. Two concerns are handled here:

- Stored attachments become content parts. Multimodal models receive media
  as ``image``/``file`` parts; other models receive a text placeholder, or the
  document text extracted at upload time when one exists.
- Opaque storage references inside image/file parts are resolved to fetchable
  URLs right before submission. URLs can be short-lived, so nothing is
  cached. A failed resolution keeps the original part and logs a warning;
  it never fails the request.

Strings not matching the storage-id pattern are treated as URLs and passed
through untouched.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import replace
from typing import List, Optional

from ..base.interfaces import AttachmentStore
from ..base.logging import get_logger, log_event
from ..base.models import Attachment, ContentPart, ConversationMessage, ModelCapabilities
from ..config.defaults import (
    DEFAULT_AUDIO_MIME_TYPE,
    DEFAULT_FILE_MIME_TYPE,
    DEFAULT_VIDEO_MIME_TYPE,
    STORAGE_ID_PATTERN,
)

_STORAGE_ID_RE = re.compile(STORAGE_ID_PATTERN)

_AUDIO_EXTENSIONS = {".mp3": "audio/mpeg", ".wav": "audio/wav", ".ogg": "audio/ogg"}
_VIDEO_EXTENSIONS = {".mp4": "video/mp4", ".webm": "video/webm", ".avi": "video/avi", ".mov": "video/mov"}

_MEDIA_LABELS = {"image": "Image", "audio": "Audio", "video": "Video"}


def is_storage_id(value: Optional[str]) -> bool:
    """Return True when ``value`` looks like an opaque storage identifier."""
    return bool(value) and _STORAGE_ID_RE.match(value) is not None


def media_placeholder(kind: str, name: str) -> str:
    label = _MEDIA_LABELS[kind]
    return (
        f"[{label}: {name}] - {label} content cannot be processed by this model. "
        f"Please use a multimodal model to analyze {kind}{'s' if kind == 'image' else ''}."
    )


def _guess_file_kind(name: str) -> Optional[str]:
    lowered = name.lower()
    for ext in _VIDEO_EXTENSIONS:
        if lowered.endswith(ext):
            return "video"
    for ext in _AUDIO_EXTENSIONS:
        if lowered.endswith(ext):
            return "audio"
    if lowered.endswith(".pdf"):
        return "pdf"
    return None


def _file_mime(attachment: Attachment, kind: Optional[str]) -> str:
    if attachment.mime_type:
        return attachment.mime_type
    lowered = attachment.name.lower()
    if kind == "pdf":
        return "application/pdf"
    table = _VIDEO_EXTENSIONS if kind == "video" else _AUDIO_EXTENSIONS
    for ext, mime in table.items():
        if lowered.endswith(ext):
            return mime
    if kind == "audio":
        return DEFAULT_AUDIO_MIME_TYPE
    if kind == "video":
        return DEFAULT_VIDEO_MIME_TYPE
    return DEFAULT_FILE_MIME_TYPE


def _document_text(attachment: Attachment, label: str = "File") -> ContentPart:
    if attachment.extracted_text:
        return ContentPart.text_part(f"[File: {attachment.name}]\n{attachment.extracted_text}")
    return ContentPart.text_part(f"[{label}: {attachment.name}] - Content could not be extracted.")


def attachment_to_part(attachment: Attachment, multimodal: bool) -> ContentPart:
    """Map one stored attachment to a content part for a model with the given capability."""
    kind = attachment.type
    if kind == "image":
        if multimodal:
            return ContentPart(type="image", image=attachment.storage_id)
        return ContentPart.text_part(media_placeholder("image", attachment.name))
    if kind in ("audio", "video"):
        if multimodal:
            return ContentPart(type="file", data=attachment.storage_id, mime_type=_file_mime(attachment, kind))
        return ContentPart.text_part(media_placeholder(kind, attachment.name))
    if kind in ("pdf", "document"):
        if multimodal:
            mime = attachment.mime_type or ("application/pdf" if kind == "pdf" else DEFAULT_FILE_MIME_TYPE)
            return ContentPart(type="file", data=attachment.storage_id, mime_type=mime)
        return _document_text(attachment)
    if kind == "text":
        return _document_text(attachment)
    # Generic file: route by extension.
    guessed = _guess_file_kind(attachment.name)
    if multimodal and guessed is not None:
        return ContentPart(type="file", data=attachment.storage_id, mime_type=_file_mime(attachment, guessed))
    label = {"audio": "Audio", "video": "Video"}.get(guessed or "", "File")
    return _document_text(attachment, label)


def expand_attachments(message: ConversationMessage, multimodal: bool) -> ConversationMessage:
    """Fold a message's stored attachments into its content parts."""
    if not message.attachments:
        return message
    parts: List[ContentPart] = []
    if isinstance(message.content, str):
        if message.content.strip():
            parts.append(ContentPart.text_part(message.content))
    else:
        parts.extend(message.content)
    parts.extend(attachment_to_part(a, multimodal) for a in message.attachments)
    return replace(message, content=parts, attachments=[])


def _inline_placeholder(part: ContentPart) -> ContentPart:
    if part.type == "image":
        return ContentPart.text_part(media_placeholder("image", "image"))
    mime = part.mime_type or ""
    kind = mime.split("/", 1)[0]
    if kind in ("audio", "video"):
        return ContentPart.text_part(media_placeholder(kind, "attachment"))
    return ContentPart.text_part("[File: attachment] - Content could not be extracted.")


class MessageNormalizer:
    """Resolve attachments and storage references for one model.

    Parameters:
        attachments: Store used to resolve storage ids and fetch metadata.
        logger: Optional logger; defaults to the package logger.
    """

    def __init__(self, attachments: AttachmentStore, logger: Optional[logging.Logger] = None) -> None:
        self._attachments = attachments
        self._logger = logger or get_logger("messages.normalizer")

    async def normalize(
        self, messages: List[ConversationMessage], capabilities: ModelCapabilities
    ) -> List[ConversationMessage]:
        """Return provider-ready copies of ``messages``.

        Resolutions for all parts run concurrently; order is preserved.
        """
        multimodal = capabilities.is_multimodal
        expanded = [expand_attachments(m, multimodal) for m in messages]
        return list(await asyncio.gather(*(self._normalize_message(m, multimodal) for m in expanded)))

    async def _normalize_message(self, message: ConversationMessage, multimodal: bool) -> ConversationMessage:
        if isinstance(message.content, str):
            return message
        if not multimodal:
            parts = [p if p.type == "text" else _inline_placeholder(p) for p in message.content]
            return replace(message, content=parts)
        parts = await asyncio.gather(*(self._resolve_part(p) for p in message.content))
        return replace(message, content=list(parts))

    async def _resolve_part(self, part: ContentPart) -> ContentPart:
        reference = part.reference
        if part.type == "text" or not is_storage_id(reference):
            return part
        try:
            url = await self._attachments.resolve_public_url(reference)
            if part.type == "image":
                if url:
                    return ContentPart(type="image", image=url)
                self._warn(reference, "no public URL")
                return part
            metadata = await self._attachments.get_attachment_metadata(reference)
            if url and metadata is not None:
                mime = metadata.get("contentType") or part.mime_type or DEFAULT_FILE_MIME_TYPE
                return ContentPart(type="file", data=url, mime_type=mime)
            self._warn(reference, "no public URL or metadata")
            return part
        except Exception as exc:  # noqa: BLE001 - degrade this attachment only
            self._warn(reference, str(exc) or type(exc).__name__)
            return part

    def _warn(self, storage_id: str, reason: str) -> None:
        log_event(
            self._logger,
            "attachment.resolve_failed",
            level=logging.WARNING,
            storage_id=storage_id,
            reason=reason,
        )


__all__ = [
    "MessageNormalizer",
    "attachment_to_part",
    "expand_attachments",
    "is_storage_id",
    "media_placeholder",
]
