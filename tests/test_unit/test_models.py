"""Unit tests for sampling request parsing.

These test PURE functions - no mocks needed!
"""

import json

import pytest

from sampling_approval.errors import ParseError
from sampling_approval.models.requests import (
    ContentBlock,
    SamplingMessage,
    SamplingRequest,
)

from .fakes import sampling_payload


class TestSamplingRequestFromJson:
    """Test SamplingRequest.from_json."""

    def test_minimal_request(self):
        """The reference event decodes with its fields intact."""
        request = SamplingRequest.from_json(json.dumps(sampling_payload("r1")))
        assert request.id == "r1"
        assert request.extension_name == "ext-a"
        assert request.max_tokens == 100
        assert request.messages == [SamplingMessage(role="user", content="hi")]
        assert request.system_prompt is None
        assert request.model_preferences is None

    def test_optional_fields(self):
        """System prompt and model preferences are decoded."""
        payload = sampling_payload(
            system_prompt="Be brief",
            model_preferences={
                "hints": [{"name": "claude-3"}, {}],
                "cost_priority": 0.2,
                "speed_priority": 1,
                "intelligence_priority": 0.9,
            },
        )
        request = SamplingRequest.from_json(json.dumps(payload))
        prefs = request.model_preferences
        assert request.system_prompt == "Be brief"
        assert [h.name for h in prefs.hints] == ["claude-3", None]
        assert prefs.cost_priority == 0.2
        assert prefs.speed_priority == 1.0
        assert prefs.intelligence_priority == 0.9

    def test_priorities_are_not_range_checked(self):
        """Priority weights are display-only and accepted outside [0, 1]."""
        payload = sampling_payload(model_preferences={"cost_priority": 7.5})
        request = SamplingRequest.from_json(json.dumps(payload))
        assert request.model_preferences.cost_priority == 7.5

    def test_invalid_json(self):
        """Non-JSON payload raises ParseError."""
        with pytest.raises(ParseError):
            SamplingRequest.from_json("{not json")

    def test_non_object_payload(self):
        """JSON that is not an object raises ParseError."""
        with pytest.raises(ParseError):
            SamplingRequest.from_json("[1, 2, 3]")

    @pytest.mark.parametrize("field_name", ["id", "extension_name", "messages", "max_tokens"])
    def test_missing_required_field(self, field_name):
        """Each required field is enforced."""
        payload = sampling_payload()
        del payload[field_name]
        with pytest.raises(ParseError):
            SamplingRequest.from_dict(payload)

    @pytest.mark.parametrize("max_tokens", [0, -5, "100", True, 1.5])
    def test_max_tokens_must_be_positive_int(self, max_tokens):
        """max_tokens must be a positive integer."""
        with pytest.raises(ParseError):
            SamplingRequest.from_dict(sampling_payload(max_tokens=max_tokens))

    def test_empty_id_rejected(self):
        """An empty id cannot correlate a decision."""
        with pytest.raises(ParseError):
            SamplingRequest.from_dict(sampling_payload(request_id=""))

    def test_message_without_content_rejected(self):
        """A message needs text or blocks."""
        with pytest.raises(ParseError):
            SamplingRequest.from_dict(sampling_payload(messages=[{"role": "user"}]))

    def test_malformed_preferences_are_dropped(self):
        """Wrongly typed preference fields become None instead of failing the request."""
        request = SamplingRequest.from_dict(
            sampling_payload(
                model_preferences={
                    "hints": [{"name": 42}, {"name": "claude-3"}],
                    "speed_priority": "fast",
                    "cost_priority": True,
                    "intelligence_priority": 0.5,
                }
            )
        )
        prefs = request.model_preferences
        assert request.id == "r1"
        assert [h.name for h in prefs.hints] == [None, "claude-3"]
        assert prefs.speed_priority is None
        assert prefs.cost_priority is None
        assert prefs.intelligence_priority == 0.5

    def test_non_list_hints_and_non_object_preferences(self):
        """Preferences of the wrong shape are ignored."""
        request = SamplingRequest.from_dict(
            sampling_payload(model_preferences={"hints": "claude-3"})
        )
        assert request.model_preferences.hints == []

        request = SamplingRequest.from_dict(sampling_payload(model_preferences="fast"))
        assert request.model_preferences is None

    def test_bad_system_prompt_type_rejected(self):
        """system_prompt is forwarded to the model and must be a string."""
        with pytest.raises(ParseError):
            SamplingRequest.from_dict(sampling_payload(system_prompt=["be brief"]))


class TestSamplingMessageText:
    """Test SamplingMessage.text extraction."""

    def test_plain_text(self):
        """Plain string content is returned unchanged."""
        assert SamplingMessage(role="user", content="hello").text == "hello"

    def test_structured_content_joins_text_blocks(self):
        """Text blocks are joined; other block types are ignored."""
        message = SamplingMessage.from_dict({
            "role": "user",
            "content": [
                {"type": "text", "text": "first"},
                {"type": "image", "data": "aGk=", "mimeType": "image/png"},
                {"type": "text", "text": "second"},
            ],
        })
        assert message.text == "first\nsecond"
        assert message.content[1] == ContentBlock(
            type="image", text=None, data={"data": "aGk=", "mimeType": "image/png"}
        )

    def test_single_block_content(self):
        """A single block object is accepted as content."""
        message = SamplingMessage.from_dict({
            "role": "assistant",
            "content": {"type": "text", "text": "ok"},
        })
        assert message.text == "ok"

    def test_non_text_only(self):
        """A message with only non-text blocks has empty text, not an error."""
        message = SamplingMessage.from_dict({
            "role": "user",
            "content": [{"type": "audio", "data": "..."}],
        })
        assert message.text == ""
