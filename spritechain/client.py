"""
Generation client for the Gemini image model (REST generateContent endpoint).

One call in, one image out: the client builds the prompt and parts list,
posts a single request and extracts the first inline image of the reply.
"""

import json
from typing import List, Optional

import requests

from spritechain.errors import GenerationError
from spritechain.imaging import DEFAULT_MIME, split_data_url, to_data_url
from spritechain.logging_config import get_logger
from spritechain.models import AnimationState, SpriteConfig
from spritechain.prompts import build_action_prompt, build_base_prompt
from spritechain.settings import DEFAULT_API_BASE, DEFAULT_MODEL, DEFAULT_TIMEOUT, Settings

logger = get_logger("client")


class GenerationClient:
    """Stateless wrapper around the image generation backend"""

    def __init__(self, api_key: str, model: str = DEFAULT_MODEL,
                 api_base: str = DEFAULT_API_BASE, timeout: float = DEFAULT_TIMEOUT):
        self.api_key = api_key
        self.model = model
        self.timeout = timeout
        self.api_url = f"{api_base.rstrip('/')}/models/{model}:generateContent"

    @classmethod
    def from_settings(cls, settings: Settings) -> "GenerationClient":
        return cls(settings.require_api_key(), model=settings.model,
                   api_base=settings.api_base, timeout=settings.timeout)

    def generate_base(self, config: SpriteConfig) -> str:
        """Generate the idle base sprite from text alone"""
        prompt = build_base_prompt(config)
        logger.info(f"Generating base sprite: {config.category.value}, {config.style.value}, "
                    f"weapon={config.weapon.value}")
        return self.call_api([{"text": prompt}], label="base")

    def generate_action(self, base_image: str, config: SpriteConfig, state: AnimationState,
                        index: int = 1, total: int = 1,
                        previous_image: Optional[str] = None) -> str:
        """
        Generate one animation frame.

        The base design is always attached first as the identity anchor. When
        `previous_image` is given it is attached second as the motion anchor
        and the prompt switches to the continuity template.
        """
        has_previous = bool(previous_image)
        parts = [self.inline_part(base_image)]
        if has_previous:
            parts.append(self.inline_part(previous_image))
        prompt = build_action_prompt(state, index, total, has_previous=has_previous)
        parts.append({"text": prompt})

        logger.info(f"Generating {state.value} frame {index}/{total} for {config.category.value} "
                    f"({len(parts) - 1} reference image(s))")
        return self.call_api(parts, label=state.value)

    @staticmethod
    def inline_part(image: str) -> dict:
        """Reference image part with the data URL prefix stripped"""
        mime, payload = split_data_url(image)
        return {"inlineData": {"mimeType": mime, "data": payload}}

    def call_api(self, parts: List[dict], label: str = "image") -> str:
        """Post one generateContent request and return the image as a data URL"""
        headers = {
            "x-goog-api-key": self.api_key,
            "Content-Type": "application/json"
        }
        payload = {
            "contents": [{
                "parts": parts
            }]
        }

        try:
            response = requests.post(self.api_url, headers=headers, json=payload, timeout=self.timeout)
        except requests.Timeout as e:
            logger.error(f"Gemini API timeout ({label}): {e}")
            raise GenerationError(f"Image generation timed out after {self.timeout:g}s",
                                  {"request": label})
        except requests.RequestException as e:
            logger.error(f"Gemini API request failed ({label}): {e}")
            raise GenerationError(f"Image generation request failed: {e}", {"request": label})

        try:
            data = response.json()
        except ValueError:
            raise GenerationError(f"Backend returned a non-JSON response (HTTP {response.status_code})",
                                  {"request": label})

        if not response.ok or (isinstance(data, dict) and "error" in data):
            error = data.get("error") if isinstance(data, dict) else None
            message = error.get("message") if isinstance(error, dict) else None
            logger.error(f"Gemini API error ({label}): {json.dumps(data)[:500]}")
            raise GenerationError(f"API error: {message or 'HTTP ' + str(response.status_code)}",
                                  {"request": label, "status": response.status_code})

        return self.extract_image(data)

    @staticmethod
    def extract_image(data) -> str:
        """Pull the first inline image out of a generateContent response"""
        candidates = data.get("candidates") if isinstance(data, dict) else None
        parts = None
        if isinstance(candidates, list) and candidates and isinstance(candidates[0], dict):
            content = candidates[0].get("content")
            if isinstance(content, dict):
                parts = content.get("parts")
        if not isinstance(parts, list) or not parts:
            raise GenerationError("No content generated")

        for part in parts:
            if not isinstance(part, dict):
                continue
            inline = part.get("inlineData") or part.get("inline_data")
            if isinstance(inline, dict) and isinstance(inline.get("data"), str) and inline["data"]:
                mime = inline.get("mimeType") or inline.get("mime_type") or DEFAULT_MIME
                return to_data_url(inline["data"], mime)

        raise GenerationError("No image data found in response")
