"""DTO package exposing validated request/response envelopes."""

from .generate_request import AttachmentDTO, GenerateRequestDTO, MessageDTO, PartDTO
from .tool_result import ToolResultDTO

__all__ = [
    "AttachmentDTO",
    "GenerateRequestDTO",
    "MessageDTO",
    "PartDTO",
    "ToolResultDTO",
]
