"""
Tests for the generation client and its prompts

Tests for spritechain/client.py and spritechain/prompts.py
"""

from unittest.mock import MagicMock, patch

import pytest
import requests

from spritechain.client import GenerationClient
from spritechain.errors import GenerationError
from spritechain.models import AnimationState, SpriteConfig, SpriteWeapon
from spritechain.prompts import ACTION_GUIDANCE, build_action_prompt, build_base_prompt
from spritechain.settings import Settings

BASE_URL = "data:image/png;base64,QkFTRQ=="
PREV_URL = "data:image/png;base64,UFJFVg=="


def api_response(data, ok=True, status_code=200):
    response = MagicMock()
    response.ok = ok
    response.status_code = status_code
    response.json.return_value = data
    return response


def image_response(payload="T1VU", mime="image/png"):
    return api_response({
        "candidates": [{
            "content": {"parts": [
                {"text": "Here is your sprite"},
                {"inlineData": {"mimeType": mime, "data": payload}},
            ]}
        }]
    })


@pytest.fixture
def client():
    return GenerationClient("test-key", model="test-model", timeout=5)


def sent_payload(mock_post):
    return mock_post.call_args.kwargs["json"]


class TestPrompts:
    """Tests for prompt construction."""

    def test_guidance_covers_every_state(self):
        assert set(ACTION_GUIDANCE) == set(AnimationState)

    def test_base_prompt_encodes_identity(self, knight_config):
        prompt = build_base_prompt(knight_config)

        assert "Pixel Art (16-bit)" in prompt
        assert "Human" in prompt
        assert "Description: knight." in prompt
        assert "wielding a Sword" in prompt
        assert "3/4 view" in prompt
        assert "pure white" in prompt
        assert "Do not include any text" in prompt

    def test_base_prompt_unarmed(self):
        prompt = build_base_prompt(SpriteConfig(weapon=SpriteWeapon.NONE))
        assert "The character is unarmed." in prompt
        assert "wielding" not in prompt

    def test_continuity_variant(self):
        prompt = build_action_prompt(AnimationState.WALK, 2, 4, has_previous=True)

        assert "Frame 2 of 4 for a Walk animation" in prompt
        assert "Second Image: PREVIOUS FRAME" in prompt
        assert ACTION_GUIDANCE[AnimationState.WALK] in prompt

    def test_identity_only_variant(self):
        prompt = build_action_prompt(AnimationState.HIT, 1, 1, has_previous=False)

        assert "Frame 1 of 1 for a Hit / Damage animation" in prompt
        assert "STRICT CONSISTENCY RULES" in prompt
        assert "PREVIOUS FRAME" not in prompt
        assert ACTION_GUIDANCE[AnimationState.HIT] in prompt


class TestGenerateBase:
    """Tests for base sprite requests."""

    @patch("spritechain.client.requests.post")
    def test_sends_text_only_request(self, mock_post, client, knight_config):
        mock_post.return_value = image_response()

        result = client.generate_base(knight_config)

        assert result == "data:image/png;base64,T1VU"
        assert mock_post.call_args.args[0].endswith("/models/test-model:generateContent")
        assert mock_post.call_args.kwargs["headers"]["x-goog-api-key"] == "test-key"
        assert mock_post.call_args.kwargs["timeout"] == 5
        parts = sent_payload(mock_post)["contents"][0]["parts"]
        assert len(parts) == 1
        assert "wielding a Sword" in parts[0]["text"]

    @patch("spritechain.client.requests.post")
    def test_keeps_response_mime_type(self, mock_post, client, knight_config):
        mock_post.return_value = image_response(payload="SlBH", mime="image/jpeg")
        assert client.generate_base(knight_config) == "data:image/jpeg;base64,SlBH"

    @patch("spritechain.client.requests.post")
    def test_no_content_raises(self, mock_post, client, knight_config):
        mock_post.return_value = api_response({"candidates": []})
        with pytest.raises(GenerationError, match="No content generated"):
            client.generate_base(knight_config)

    @patch("spritechain.client.requests.post")
    def test_no_image_part_raises(self, mock_post, client, knight_config):
        mock_post.return_value = api_response({
            "candidates": [{"content": {"parts": [{"text": "I cannot draw that"}]}}]
        })
        with pytest.raises(GenerationError, match="No image data found"):
            client.generate_base(knight_config)

    @patch("spritechain.client.requests.post")
    def test_http_error_surfaces_message(self, mock_post, client, knight_config):
        mock_post.return_value = api_response(
            {"error": {"code": 400, "message": "API key not valid"}}, ok=False, status_code=400)
        with pytest.raises(GenerationError, match="API key not valid"):
            client.generate_base(knight_config)

    @patch("spritechain.client.requests.post")
    def test_timeout_becomes_generation_error(self, mock_post, client, knight_config):
        mock_post.side_effect = requests.Timeout("read timed out")
        with pytest.raises(GenerationError, match="timed out"):
            client.generate_base(knight_config)

    @patch("spritechain.client.requests.post")
    def test_non_json_response(self, mock_post, client, knight_config):
        response = api_response(None, ok=False, status_code=502)
        response.json.side_effect = ValueError("no json")
        mock_post.return_value = response
        with pytest.raises(GenerationError, match="HTTP 502"):
            client.generate_base(knight_config)

    @patch("spritechain.client.requests.post")
    def test_connection_error_becomes_generation_error(self, mock_post, client, knight_config):
        mock_post.side_effect = requests.ConnectionError("connection refused")
        with pytest.raises(GenerationError, match="request failed: connection refused") as exc_info:
            client.generate_base(knight_config)
        assert exc_info.value.details == {"request": "base"}

    @pytest.mark.parametrize("data", [
        {"candidates": [None]},
        {"candidates": "oops"},
        {"candidates": [{"content": "oops"}]},
        {"candidates": [{"content": {"parts": "oops"}}]},
        ["not", "a", "dict"],
    ])
    @patch("spritechain.client.requests.post")
    def test_malformed_candidates_raise(self, mock_post, data, client, knight_config):
        mock_post.return_value = api_response(data)
        with pytest.raises(GenerationError, match="No content generated"):
            client.generate_base(knight_config)

    @pytest.mark.parametrize("parts", [
        ["just text"],
        [None, {"inlineData": "oops"}],
        [{"inlineData": {"mimeType": "image/png", "data": None}}],
        [{"inlineData": {"mimeType": "image/png", "data": ""}}],
    ])
    @patch("spritechain.client.requests.post")
    def test_malformed_parts_raise(self, mock_post, parts, client, knight_config):
        mock_post.return_value = api_response({"candidates": [{"content": {"parts": parts}}]})
        with pytest.raises(GenerationError, match="No image data found"):
            client.generate_base(knight_config)

    @patch("spritechain.client.requests.post")
    def test_skips_malformed_parts_before_image(self, mock_post, client, knight_config):
        mock_post.return_value = api_response({"candidates": [{"content": {"parts": [
            "just text", {"inlineData": None}, {"inline_data": {"mime_type": "image/webp", "data": "V0VC"}},
        ]}}]})
        assert client.generate_base(knight_config) == "data:image/webp;base64,V0VC"


class TestGenerateAction:
    """Tests for animation frame requests."""

    @patch("spritechain.client.requests.post")
    def test_base_then_previous_then_prompt(self, mock_post, client, knight_config):
        mock_post.return_value = image_response()

        client.generate_action(BASE_URL, knight_config, AnimationState.RUN, 3, 5, PREV_URL)

        parts = sent_payload(mock_post)["contents"][0]["parts"]
        assert len(parts) == 3
        assert parts[0]["inlineData"] == {"mimeType": "image/png", "data": "QkFTRQ=="}
        assert parts[1]["inlineData"] == {"mimeType": "image/png", "data": "UFJFVg=="}
        assert "Frame 3 of 5 for a Run animation" in parts[2]["text"]
        assert "Continue the motion from Image 2" in parts[2]["text"]

    @patch("spritechain.client.requests.post")
    def test_without_previous_frame(self, mock_post, client, knight_config):
        mock_post.return_value = image_response()

        client.generate_action(BASE_URL, knight_config, AnimationState.ATTACK)

        parts = sent_payload(mock_post)["contents"][0]["parts"]
        assert len(parts) == 2
        assert parts[0]["inlineData"]["data"] == "QkFTRQ=="
        assert "Frame 1 of 1" in parts[1]["text"]
        assert "STRICT CONSISTENCY RULES" in parts[1]["text"]

    @patch("spritechain.client.requests.post")
    def test_empty_previous_frame_uses_identity_only_prompt(self, mock_post, client, knight_config):
        mock_post.return_value = image_response()

        client.generate_action(BASE_URL, knight_config, AnimationState.WALK, 1, 1, "")

        parts = sent_payload(mock_post)["contents"][0]["parts"]
        assert len(parts) == 2
        assert "STRICT CONSISTENCY RULES" in parts[1]["text"]
        assert "Second Image" not in parts[1]["text"]

    @patch("spritechain.client.requests.post")
    def test_missing_image_raises(self, mock_post, client, knight_config):
        mock_post.return_value = api_response({"candidates": [{"content": {}}]})
        with pytest.raises(GenerationError):
            client.generate_action(BASE_URL, knight_config, AnimationState.JUMP, 1, 1, PREV_URL)


class TestFromSettings:
    """Tests for building a client from settings."""

    def test_uses_settings(self):
        client = GenerationClient.from_settings(
            Settings(api_key="abc", model="m", api_base="https://example.test/v1/", timeout=9))

        assert client.api_key == "abc"
        assert client.api_url == "https://example.test/v1/models/m:generateContent"
        assert client.timeout == 9
