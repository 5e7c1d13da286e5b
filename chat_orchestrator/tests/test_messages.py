"""History preparation: system prompt injection and attachment normalization."""
from __future__ import annotations

import pytest

from chat_orchestrator.base.memory import InMemoryAttachmentStore
from chat_orchestrator.base.models import Attachment, ContentPart, ConversationMessage, ModelCapabilities, UserPreferences
from chat_orchestrator.config.defaults import DEFAULT_SYSTEM_PROMPT, USER_INSTRUCTIONS_LABEL
from chat_orchestrator.messages import (
    MessageNormalizer,
    attachment_to_part,
    build_system_prompt,
    expand_attachments,
    inject_system_prompt,
    is_storage_id,
)

STORAGE_ID = "kg2abcdefghijklmnopqrstuvwxyz0123"
VISION = ModelCapabilities(id="vision", is_multimodal=True)
TEXT_ONLY = ModelCapabilities(id="text-only")


# ---------------------------------------------------------------------------
# System prompt
# ---------------------------------------------------------------------------


def test_default_prompt_with_instructions():
    prompt = build_system_prompt(None, "  be brief ")

    assert prompt == DEFAULT_SYSTEM_PROMPT + USER_INSTRUCTIONS_LABEL + "be brief"  # nosec B101


def test_custom_prompt_only_when_enabled():
    enabled = UserPreferences(use_custom_system_prompt=True, system_prompt="Pirate mode")
    disabled = UserPreferences(use_custom_system_prompt=False, system_prompt="Pirate mode")
    blank = UserPreferences(use_custom_system_prompt=True, system_prompt="   ")

    assert build_system_prompt(enabled) == "Pirate mode"  # nosec B101
    assert build_system_prompt(disabled) == DEFAULT_SYSTEM_PROMPT  # nosec B101
    assert build_system_prompt(blank) == DEFAULT_SYSTEM_PROMPT  # nosec B101


def test_injection_prepends_once():
    history = [ConversationMessage(role="user", content="hi")]

    once = inject_system_prompt(history, None)
    twice = inject_system_prompt(once, UserPreferences(use_custom_system_prompt=True, system_prompt="other"))

    assert [m.role for m in once] == ["system", "user"]  # nosec B101
    assert twice == once  # nosec B101
    assert twice is not once  # nosec B101
    assert len(history) == 1  # nosec B101


# ---------------------------------------------------------------------------
# Attachments
# ---------------------------------------------------------------------------


def test_storage_id_pattern():
    assert is_storage_id(STORAGE_ID)  # nosec B101
    assert not is_storage_id("https://cdn.test/a.png")  # nosec B101
    assert not is_storage_id("short123")  # nosec B101
    assert not is_storage_id(None)  # nosec B101


def test_image_attachment_for_text_only_model_becomes_placeholder():
    part = attachment_to_part(Attachment(type="image", storage_id=STORAGE_ID, name="cat.png"), multimodal=False)

    assert part.text == (  # nosec B101
        "[Image: cat.png] - Image content cannot be processed by this model. "
        "Please use a multimodal model to analyze images."
    )


def test_audio_attachment_for_multimodal_model_keeps_mime():
    part = attachment_to_part(Attachment(type="audio", storage_id=STORAGE_ID, name="a.wav"), multimodal=True)

    assert (part.type, part.data, part.mime_type) == ("file", STORAGE_ID, "audio/wav")  # nosec B101


def test_documents_fall_back_to_extracted_text():
    with_text = Attachment(type="pdf", storage_id=STORAGE_ID, name="r.pdf", extracted_text="Body")
    without = Attachment(type="document", storage_id=STORAGE_ID, name="r.docx")

    assert attachment_to_part(with_text, multimodal=False).text == "[File: r.pdf]\nBody"  # nosec B101
    assert attachment_to_part(without, multimodal=False).text == "[File: r.docx] - Content could not be extracted."  # nosec B101
    assert attachment_to_part(with_text, multimodal=True).mime_type == "application/pdf"  # nosec B101


def test_generic_files_route_by_extension():
    video = Attachment(type="file", storage_id=STORAGE_ID, name="clip.MOV")
    other = Attachment(type="file", storage_id=STORAGE_ID, name="notes.bin")

    assert attachment_to_part(video, multimodal=True).mime_type == "video/mov"  # nosec B101
    assert attachment_to_part(video, multimodal=False).text.startswith("[Video: clip.MOV]")  # nosec B101
    assert attachment_to_part(other, multimodal=True).type == "text"  # nosec B101


def test_expand_attachments_keeps_text_first():
    message = ConversationMessage(
        role="user",
        content="look",
        attachments=[Attachment(type="image", storage_id=STORAGE_ID, name="cat.png")],
    )

    expanded = expand_attachments(message, multimodal=True)

    assert [p.type for p in expanded.content] == ["text", "image"]  # nosec B101
    assert expanded.attachments == []  # nosec B101


@pytest.mark.asyncio
async def test_storage_references_resolve_to_urls():
    store = InMemoryAttachmentStore()
    store.put(STORAGE_ID, "https://files.test/doc", "application/pdf")
    message = ConversationMessage(
        role="user",
        content=[ContentPart.text_part("read"), ContentPart(type="file", data=STORAGE_ID)],
    )

    (out,) = await MessageNormalizer(store).normalize([message], VISION)

    assert out.content[1] == ContentPart(type="file", data="https://files.test/doc", mime_type="application/pdf")  # nosec B101


@pytest.mark.asyncio
async def test_urls_are_passed_through():
    part = ContentPart(type="image", image="https://cdn.test/a.png")

    (out,) = await MessageNormalizer(InMemoryAttachmentStore()).normalize(
        [ConversationMessage(role="user", content=[part])], VISION
    )

    assert out.content == [part]  # nosec B101


@pytest.mark.asyncio
async def test_failed_resolution_keeps_part_and_logs(log_events):
    part = ContentPart(type="image", image=STORAGE_ID)

    (out,) = await MessageNormalizer(InMemoryAttachmentStore()).normalize(
        [ConversationMessage(role="user", content=[part])], VISION
    )

    assert out.content == [part]  # nosec B101
    (event,) = log_events.events("attachment.resolve_failed")
    assert event["storage_id"] == STORAGE_ID  # nosec B101


@pytest.mark.asyncio
async def test_store_exception_is_contained(log_events):
    class BrokenStore(InMemoryAttachmentStore):
        async def resolve_public_url(self, storage_id):
            raise RuntimeError("storage offline")

    part = ContentPart(type="file", data=STORAGE_ID, mime_type="application/pdf")

    (out,) = await MessageNormalizer(BrokenStore()).normalize([ConversationMessage(role="user", content=[part])], VISION)

    assert out.content == [part]  # nosec B101
    assert log_events.events("attachment.resolve_failed")[0]["reason"] == "storage offline"  # nosec B101


@pytest.mark.asyncio
async def test_inline_media_becomes_placeholder_for_text_only_model():
    message = ConversationMessage(
        role="user",
        content=[ContentPart(type="image", image="https://cdn.test/a.png"), ContentPart.text_part("what is it")],
    )

    (out,) = await MessageNormalizer(InMemoryAttachmentStore()).normalize([message], TEXT_ONLY)

    assert out.content[0].text.startswith("[Image: image]")  # nosec B101
    assert out.content[1].text == "what is it"  # nosec B101
