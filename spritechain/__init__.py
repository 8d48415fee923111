"""
spritechain - consistent multi-frame sprite sets from a generative image model.

Generates an idle base sprite, chains animation frames off it one request at
a time, cleans every result into a transparent centered sprite and stitches
the set into a sprite sheet.
"""

from spritechain.client import GenerationClient
from spritechain.errors import (
    ConfigurationError,
    GenerationError,
    ImageDecodeError,
    ImageSurfaceError,
    OrchestratorBusyError,
    SpriteChainError,
)
from spritechain.imaging import center_sprite, generate_sprite_sheet, remove_background
from spritechain.models import (
    AnimationState,
    GeneratedFrame,
    SpriteCategory,
    SpriteConfig,
    SpriteStyle,
    SpriteWeapon,
)
from spritechain.orchestrator import SpriteOrchestrator
from spritechain.settings import Settings
from spritechain.store import FrameStore

__version__ = "0.1.0"
__all__ = [
    "AnimationState",
    "ConfigurationError",
    "FrameStore",
    "GeneratedFrame",
    "GenerationClient",
    "GenerationError",
    "ImageDecodeError",
    "ImageSurfaceError",
    "OrchestratorBusyError",
    "Settings",
    "SpriteCategory",
    "SpriteChainError",
    "SpriteConfig",
    "SpriteOrchestrator",
    "SpriteStyle",
    "SpriteWeapon",
    "center_sprite",
    "generate_sprite_sheet",
    "remove_background",
    "__version__",
]
