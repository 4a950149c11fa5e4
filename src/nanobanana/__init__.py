"""Nano Banana relay - prompt-to-image generation re-hosted on a public file host."""

__version__ = "1.0.0"

from nanobanana.core.config import RelayConfig, config
from nanobanana.core.generator import ImageGenerator

__all__ = [
    "ImageGenerator",
    "RelayConfig",
    "config",
]
