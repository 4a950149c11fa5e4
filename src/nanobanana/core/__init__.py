"""Core relay pipeline.

Layers
------
1. **Configuration** (config.py):
   - Environment-based configuration using Pydantic Settings
   - All settings prefixed with NANOBANANA_ in .env files

2. **Upstream provider** (provider.py):
   - Synthetic cookie and header construction
   - Prediction submission and the status poll loop

3. **Upload relay** (uploader.py):
   - Download of the generated image and multipart re-upload

4. **Pipeline** (generator.py):
   - ImageGenerator chaining submit -> poll -> upload

Errors shared by all layers live in errors.py.
"""

from nanobanana.core.config import RelayConfig, config
from nanobanana.core.errors import RelayError
from nanobanana.core.generator import ImageGenerator

__all__ = [
    "ImageGenerator",
    "RelayConfig",
    "RelayError",
    "config",
]
