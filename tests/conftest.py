"""
Pytest Configuration and Fixtures

Shared fixtures for all tests.
"""

import shutil
import tempfile
from pathlib import Path
from typing import List, Optional

import numpy as np
import pytest
from PIL import Image

from spritechain.errors import GenerationError
from spritechain.imaging import decode_image, encode_image
from spritechain.models import SpriteCategory, SpriteConfig, SpriteStyle, SpriteWeapon

WHITE = (255, 255, 255, 255)


@pytest.fixture
def temp_dir():
    """Create a temporary directory for tests."""
    temp_path = tempfile.mkdtemp()
    yield Path(temp_path)
    shutil.rmtree(temp_path, ignore_errors=True)


def _render(width: int, height: int, background=WHITE, boxes=()) -> str:
    arr = np.zeros((height, width, 4), dtype=np.uint8)
    arr[:, :] = background
    for x, y, w, h, color in boxes:
        arr[y:y + h, x:x + w] = color
    return encode_image(Image.fromarray(arr, "RGBA"))


@pytest.fixture
def make_image():
    """Factory: make_image(w, h, background=WHITE, boxes=[(x, y, w, h, rgba), ...]) -> data URL."""
    return _render


@pytest.fixture
def pixels():
    """Decode a data URL into an (H, W, 4) uint8 array."""
    return lambda image: np.array(decode_image(image))


@pytest.fixture
def knight_config() -> SpriteConfig:
    return SpriteConfig(
        category=SpriteCategory.HUMAN,
        style=SpriteStyle.PIXEL_ART_16BIT,
        weapon=SpriteWeapon.SWORD,
        description="knight",
    )


class FakeClient:
    """Records every call and returns a white frame with a distinct colored box."""

    def __init__(self, fail_on_call: Optional[int] = None):
        self.calls: List[dict] = []
        self.fail_on_call = fail_on_call

    def _next_image(self) -> str:
        n = len(self.calls) - 1
        if self.fail_on_call is not None and n == self.fail_on_call:
            raise GenerationError("No image data found in response")
        color = (10 * (n + 1) % 256, 40, 200, 255)
        return _render(16, 16, boxes=[(n % 4, 1, 3, 5, color)])

    def generate_base(self, config):
        self.calls.append({"kind": "base", "config": config})
        return self._next_image()

    def generate_action(self, base_image, config, state, index=1, total=1, previous_image=None):
        self.calls.append({
            "kind": "action",
            "base_image": base_image,
            "config": config,
            "state": state,
            "index": index,
            "total": total,
            "previous_image": previous_image,
        })
        return self._next_image()


@pytest.fixture
def fake_client():
    return FakeClient()


@pytest.fixture
def failing_client():
    """Factory: failing_client(n) fails on the n-th (0-based) backend call."""
    return lambda n: FakeClient(fail_on_call=n)
