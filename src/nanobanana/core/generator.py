"""Generation pipeline: submit, poll, then re-host the result."""

from __future__ import annotations

import asyncio
import logging
import time

import httpx

from nanobanana.core.config import RelayConfig, config as default_config
from nanobanana.core.errors import RelayError
from nanobanana.core.provider import ClockFunc, SleepFunc, VisualGPTClient
from nanobanana.core.uploader import UploadRelay

logger = logging.getLogger(__name__)


class ImageGenerator:
    """Runs the full prompt-to-public-URL pipeline.

    Each call to :meth:`generate` builds a fresh :class:`VisualGPTClient`, so
    every generation gets its own synthetic session cookie.  The steps run
    strictly in sequence and nothing is retried.
    """

    def __init__(
        self,
        http: httpx.AsyncClient,
        config: RelayConfig | None = None,
        *,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ) -> None:
        """
        Initialize the image generator.

        Args:
            http: Shared async HTTP client for all outbound calls.
            config: Configuration object. If None, uses global default config.
            sleep: Coroutine function used between polls.
            clock: Monotonic clock used for the poll budget.
        """
        self.config = config or default_config
        self._http = http
        self._sleep = sleep
        self._clock = clock

    async def generate(self, prompt: str, image_url: str | None = None) -> str:
        """
        Generate an image from a prompt and return its re-hosted URL.

        Args:
            prompt: Text description of the image to generate
            image_url: Optional seed image (falls back to the configured one)

        Returns:
            Public URL of the uploaded image
        """
        client = VisualGPTClient(self.config, self._http, sleep=self._sleep, clock=self._clock)
        relay = UploadRelay(self.config, self._http)

        logger.info("Starting image generation for prompt: %s...", prompt[:50])
        try:
            session_id = await client.submit(prompt, image_url)
            source_url = await client.poll(session_id)
            asset = await relay.relay_image(source_url)
        except RelayError as e:
            logger.error(f"Image generation failed: {e.message}")
            raise

        logger.info("Image generation and upload completed successfully")
        return asset.url
