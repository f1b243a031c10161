"""Data models for sampling requests."""

from .requests import (
    ContentBlock,
    ModelHint,
    ModelPreferences,
    SamplingMessage,
    SamplingRequest,
)

__all__ = [
    "ContentBlock",
    "ModelHint",
    "ModelPreferences",
    "SamplingMessage",
    "SamplingRequest",
]
