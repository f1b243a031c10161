"""Sampling request models decoded from the backend stream."""

import json
from dataclasses import dataclass, field
from typing import Any

from ..errors import ParseError


def _display_number(data: dict[str, Any], key: str) -> float | None:
    # Display-only field: a value of the wrong type is dropped, not rejected
    value = data.get(key)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return None
    return float(value)


def _optional_string(data: dict[str, Any], key: str) -> str | None:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise ParseError(f"'{key}' must be a string, got {type(value).__name__}")
    return value


@dataclass
class ContentBlock:
    """A typed content block within a sampling message.

    Only text blocks carry meaning here; other block types (image, audio)
    are kept as-is and skipped when extracting text.

    Attributes:
        type: Block type ("text", "image", ...)
        text: Text content (for text blocks)
        data: Remaining block fields
    """

    type: str
    text: str | None = None
    data: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentBlock":
        """Create ContentBlock from dictionary.

        Args:
            data: Dictionary with content block data

        Returns:
            Parsed ContentBlock
        """
        text = data.get("text")
        return cls(
            type=str(data.get("type", "")),
            text=text if isinstance(text, str) else None,
            data={k: v for k, v in data.items() if k not in ("type", "text")},
        )


@dataclass
class SamplingMessage:
    """A message the extension wants sent to the model.

    Attributes:
        role: Message role ("user" or "assistant")
        content: Plain text or list of content blocks
    """

    role: str
    content: str | list[ContentBlock]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SamplingMessage":
        """Create SamplingMessage from dictionary.

        Args:
            data: Dictionary with role and content

        Returns:
            Parsed SamplingMessage

        Raises:
            ParseError: If role or content has the wrong shape
        """
        role = data.get("role")
        if not isinstance(role, str):
            raise ParseError("message 'role' must be a string")

        raw_content = data.get("content")
        content: str | list[ContentBlock]
        if isinstance(raw_content, str):
            content = raw_content
        elif isinstance(raw_content, list):
            content = [
                ContentBlock.from_dict(c)
                for c in raw_content
                if isinstance(c, dict)
            ]
        elif isinstance(raw_content, dict):
            # Single block form
            content = [ContentBlock.from_dict(raw_content)]
        else:
            raise ParseError("message 'content' must be text or a list of content blocks")

        return cls(role=role, content=content)

    @property
    def text(self) -> str:
        """Text of the message; text blocks are joined with newlines."""
        if isinstance(self.content, str):
            return self.content
        return "\n".join(
            block.text for block in self.content
            if block.type == "text" and block.text
        )


@dataclass
class ModelHint:
    """Named model hint."""

    name: str | None = None


@dataclass
class ModelPreferences:
    """Soft model hints and priority weights.

    Weights are conceptually in [0, 1] but are display-only and not validated.

    Attributes:
        hints: Named model hints in preference order
        cost_priority: Weight for low cost
        speed_priority: Weight for low latency
        intelligence_priority: Weight for capability
    """

    hints: list[ModelHint] = field(default_factory=list)
    cost_priority: float | None = None
    speed_priority: float | None = None
    intelligence_priority: float | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModelPreferences":
        """Create ModelPreferences from dictionary.

        Args:
            data: Dictionary with optional hints and priorities

        Returns:
            Parsed ModelPreferences
        """
        raw_hints = data.get("hints")
        if not isinstance(raw_hints, list):
            raw_hints = []

        hints = []
        for h in raw_hints:
            if isinstance(h, dict):
                name = h.get("name")
                hints.append(ModelHint(name=name if isinstance(name, str) else None))
        return cls(
            hints=hints,
            cost_priority=_display_number(data, "cost_priority"),
            speed_priority=_display_number(data, "speed_priority"),
            intelligence_priority=_display_number(data, "intelligence_priority"),
        )


@dataclass
class SamplingRequest:
    """A sampling request awaiting operator decision.

    Attributes:
        id: Backend-assigned id, used to correlate the decision
        extension_name: Extension that asked for sampling
        messages: Conversation to send to the model
        max_tokens: Token budget for the model response
        system_prompt: Optional system prompt
        model_preferences: Optional model hints
    """

    id: str
    extension_name: str
    messages: list[SamplingMessage]
    max_tokens: int
    system_prompt: str | None = None
    model_preferences: ModelPreferences | None = None

    @classmethod
    def from_dict(cls, data: Any) -> "SamplingRequest":
        """Create SamplingRequest from a decoded JSON object.

        Args:
            data: Decoded event payload

        Returns:
            Parsed SamplingRequest

        Raises:
            ParseError: If a required field is missing or has the wrong type
        """
        if not isinstance(data, dict):
            raise ParseError(f"Sampling request must be a JSON object, got {type(data).__name__}")

        request_id = data.get("id")
        if not isinstance(request_id, str) or not request_id:
            raise ParseError("'id' must be a non-empty string")

        extension_name = data.get("extension_name")
        if not isinstance(extension_name, str):
            raise ParseError("'extension_name' must be a string")

        raw_messages = data.get("messages")
        if not isinstance(raw_messages, list):
            raise ParseError("'messages' must be a list")
        messages = []
        for raw in raw_messages:
            if not isinstance(raw, dict):
                raise ParseError("each message must be an object")
            messages.append(SamplingMessage.from_dict(raw))

        max_tokens = data.get("max_tokens")
        if isinstance(max_tokens, bool) or not isinstance(max_tokens, int) or max_tokens <= 0:
            raise ParseError("'max_tokens' must be a positive integer")

        preferences = None
        raw_preferences = data.get("model_preferences")
        if isinstance(raw_preferences, dict):
            preferences = ModelPreferences.from_dict(raw_preferences)

        return cls(
            id=request_id,
            extension_name=extension_name,
            messages=messages,
            max_tokens=max_tokens,
            system_prompt=_optional_string(data, "system_prompt"),
            model_preferences=preferences,
        )

    @classmethod
    def from_json(cls, payload: str) -> "SamplingRequest":
        """Parse a single event payload into a request.

        Args:
            payload: JSON text of one stream event

        Returns:
            Parsed SamplingRequest

        Raises:
            ParseError: If the payload is not valid JSON or not request-shaped

        Examples:
            >>> request = SamplingRequest.from_json(
            ...     '{"id":"r1","extension_name":"ext","messages":[],"max_tokens":10}'
            ... )
            >>> request.id
            'r1'
        """
        try:
            data = json.loads(payload)
        except json.JSONDecodeError as e:
            raise ParseError(f"Invalid JSON in sampling event: {e}") from e
        return cls.from_dict(data)
