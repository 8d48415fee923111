"""
Spritechain exceptions

Every failure the pipeline reports to a user derives from SpriteChainError.
"""


class SpriteChainError(Exception):
    """Base exception for all spritechain errors."""

    def __init__(self, message: str, details: dict = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self):
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(SpriteChainError):
    """Raised when required settings (e.g. the API key) are missing."""
    pass


class GenerationError(SpriteChainError):
    """Raised when the image backend returns no usable image."""
    pass


class ImageDecodeError(SpriteChainError):
    """Raised when a raster payload cannot be decoded."""
    pass


class ImageSurfaceError(SpriteChainError):
    """Raised when a drawing surface cannot be allocated."""
    pass


class OrchestratorBusyError(SpriteChainError):
    """Raised when a generation action starts while another is in flight."""

    def __init__(self, action: str):
        super().__init__(f"Cannot start '{action}': a generation is already in progress",
                         {"action": action})
