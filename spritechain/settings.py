"""
Runtime settings, read from the environment (and a .env file when present).
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

from spritechain.errors import ConfigurationError

DEFAULT_MODEL = "gemini-2.5-flash-image"
DEFAULT_API_BASE = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_TIMEOUT = 120.0
DEFAULT_OUTPUT_DIR = "./output"

API_KEY_VARS = ("GEMINI_API_KEY", "GOOGLE_API_KEY", "API_KEY")


def get_api_key() -> Optional[str]:
    """First non-empty API key among the supported environment variables."""
    for name in API_KEY_VARS:
        value = os.getenv(name)
        if value:
            return value
    return None


@dataclass
class Settings:
    """Settings for talking to the image backend"""
    api_key: Optional[str] = None
    model: str = DEFAULT_MODEL
    api_base: str = DEFAULT_API_BASE
    timeout: float = DEFAULT_TIMEOUT
    output_dir: str = DEFAULT_OUTPUT_DIR

    @classmethod
    def from_env(cls, env_file: Optional[Path] = None, **overrides) -> "Settings":
        """
        Build settings from SPRITECHAIN_* variables and the API key variables.

        Keyword overrides that are not None win over the environment.
        """
        load_dotenv(env_file)

        values = {
            "api_key": get_api_key(),
            "model": os.getenv("SPRITECHAIN_MODEL", DEFAULT_MODEL),
            "api_base": os.getenv("SPRITECHAIN_API_BASE", DEFAULT_API_BASE),
            "output_dir": os.getenv("SPRITECHAIN_OUTPUT_DIR", DEFAULT_OUTPUT_DIR),
        }
        timeout = os.getenv("SPRITECHAIN_TIMEOUT")
        if timeout:
            try:
                values["timeout"] = float(timeout)
            except ValueError:
                raise ConfigurationError(f"SPRITECHAIN_TIMEOUT must be a number, got '{timeout}'")

        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "No API key configured; set GEMINI_API_KEY or pass --api-key",
                {"checked": list(API_KEY_VARS)},
            )
        return self.api_key
