"""
Data model for sprite sets: the identity taxonomy, animation states and frames.
"""

from dataclasses import dataclass, replace
from enum import Enum


class LabeledEnum(Enum):
    """Enum whose values are the human-readable labels shown to users."""

    @property
    def label(self) -> str:
        return self.value

    @classmethod
    def parse(cls, text: str):
        """Look up a member by name or label, ignoring case and separators."""
        wanted = _normalize(text)
        for member in cls:
            if wanted in (_normalize(member.name), _normalize(member.value)):
                return member
        choices = ", ".join(m.value for m in cls)
        raise ValueError(f"Unknown {cls.__name__} '{text}' (choose from: {choices})")

    def __str__(self):
        return self.value


def _normalize(text: str) -> str:
    return "".join(ch for ch in str(text).lower() if ch.isalnum())


class SpriteCategory(LabeledEnum):
    HUMAN = "Human"
    SOLDIER = "Soldier"
    ALIEN = "Alien"
    MONSTER = "Monster"
    ROBOT = "Robot"
    ANIMAL = "Animal"
    NPC = "NPC"
    BOSS = "Boss Character"


class SpriteStyle(LabeledEnum):
    PIXEL_ART_8BIT = "Pixel Art (8-bit)"
    PIXEL_ART_16BIT = "Pixel Art (16-bit)"
    PIXEL_ART_32BIT = "Pixel Art (32-bit)"
    PIXEL_ART_64BIT = "Pixel Art (64-bit)"
    PIXEL_ART_128BIT = "High Def 2D (128-bit)"
    CARTOON = "Cartoon"
    DARK_FANTASY = "Dark Fantasy"
    SCI_FI = "Sci-Fi"
    CHIBI = "Cute / Chibi"
    REALISTIC = "Realistic 2D"


class SpriteWeapon(LabeledEnum):
    NONE = "None"
    SWORD = "Sword"
    DAGGER = "Dagger"
    AXE = "Axe"
    SPEAR = "Spear"
    BOW = "Bow & Arrow"
    STAFF = "Magic Staff"
    WAND = "Wand"
    PISTOL = "Pistol"
    RIFLE = "Assault Rifle"
    LASER_GUN = "Laser Gun"
    PLASMA_CANNON = "Plasma Cannon"
    SHIELD = "Shield & Weapon"
    CLAWS = "Natural Claws"


class AnimationState(LabeledEnum):
    IDLE = "Idle"
    WALK = "Walk"
    RUN = "Run"
    JUMP = "Jump"
    ATTACK = "Attack"
    HIT = "Hit / Damage"
    DEATH = "Death"

    @property
    def is_base(self) -> bool:
        return self is AnimationState.IDLE

    @property
    def slug(self) -> str:
        """Filesystem-friendly name, e.g. 'hit' for 'Hit / Damage'."""
        return self.name.lower()


@dataclass(frozen=True)
class SpriteConfig:
    """Identity descriptor shared by every frame of a character"""
    category: SpriteCategory = SpriteCategory.HUMAN
    style: SpriteStyle = SpriteStyle.PIXEL_ART_16BIT
    weapon: SpriteWeapon = SpriteWeapon.NONE
    description: str = "A brave knight with silver armor and a red cape."

    @property
    def is_armed(self) -> bool:
        return self.weapon is not SpriteWeapon.NONE

    def with_changes(self, **changes) -> "SpriteConfig":
        return replace(self, **changes)

    def to_dict(self) -> dict:
        return {
            "category": self.category.value,
            "style": self.style.value,
            "weapon": self.weapon.value,
            "description": self.description,
        }


@dataclass(frozen=True)
class GeneratedFrame:
    """One processed frame; `image` is a self-describing data URL"""
    id: str
    state: AnimationState
    image: str
    timestamp: int

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "state": self.state.value,
            "timestamp": self.timestamp,
        }
