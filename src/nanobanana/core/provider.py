"""VisualGPT provider client for the Nano Banana relay.

This module wraps the two upstream calls that produce a generated image:

1. **Submit**: ``POST`` a prediction (prompt + seed image) and receive an
   opaque ``session_id``.
2. **Poll**: ``GET`` the status endpoint with that ``session_id`` until the
   first result reaches a terminal status or the wall-clock budget runs out.

The upstream only accepts requests that look like they come from its own web
page, so every request carries a fixed browser fingerprint and a synthetic
cookie.  The cookie embeds a fresh ``anonymous_user_id`` per client instance;
everything else about the client is derived once at construction and never
mutated afterwards.

Poll States
-----------
Each status payload is reduced to a :class:`PollResult` by the pure function
:func:`interpret_status`:

================  ===========================================================
State             Condition
================  ===========================================================
server_timed_out  ``message`` contains both "time" and "out" (any case)
succeeded         first result has ``status == "succeeded"``
failed            first result has ``status == "failed"``
pending           anything else, including an empty results list
================  ===========================================================

The loop itself adds the client-side timeout: it raises
:class:`~nanobanana.core.errors.PollTimeoutError` when the elapsed time
exceeds the configured budget after a non-terminal check.

Usage
-----
::

    async with httpx.AsyncClient() as http:
        client = VisualGPTClient(config, http)
        session_id = await client.submit("a cat")
        image_url = await client.poll(session_id)
"""

from __future__ import annotations

import asyncio
import logging
import time
import uuid
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import httpx

from nanobanana.core.config import RelayConfig
from nanobanana.core.errors import (
    GenerationFailedError,
    PollTimeoutError,
    RelayError,
    UpstreamPollError,
    UpstreamSubmissionError,
    UpstreamTimeoutError,
)

logger = logging.getLogger(__name__)

SleepFunc = Callable[[float], Awaitable[Any]]
ClockFunc = Callable[[], float]


class PollState(str, Enum):
    """Outcome of a single status check."""

    PENDING = "pending"
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    SERVER_TIMED_OUT = "server_timed_out"


@dataclass(frozen=True)
class PollResult:
    """One status payload reduced to its poll state.

    Attributes:
        state: The derived :class:`PollState`.
        url: Generated image URL; only meaningful for ``SUCCEEDED`` and may be
            empty even then.
        status: Raw status string of the first result, for logging.
    """

    state: PollState
    url: str = ""
    status: str = ""


# ---------------------------------------------------------------------------
# Pure helpers.
# ---------------------------------------------------------------------------


def build_cookie(template: str, anonymous_user_id: str) -> str:
    """Fill the ``{anonymous_user_id}`` placeholder of the cookie template."""
    return template.replace("{anonymous_user_id}", anonymous_user_id)


def build_status_headers(config: RelayConfig, cookie: str) -> dict[str, str]:
    """Return the browser-like header set used for status requests."""
    return {
        "accept": "application/json, text/plain, */*",
        "accept-language": config.accept_language,
        "cookie": cookie,
        "referer": config.referer,
        "sec-ch-ua": config.sec_ch_ua,
        "sec-ch-ua-mobile": "?0",
        "sec-ch-ua-platform": config.sec_ch_ua_platform,
        "user-agent": config.user_agent,
    }


def build_submit_headers(config: RelayConfig, cookie: str) -> dict[str, str]:
    """Return the submit header set: status headers plus body type and origin."""
    headers = build_status_headers(config, cookie)
    headers["content-type"] = "application/json; charset=UTF-8"
    headers["origin"] = config.origin
    return headers


def resolve_starting_image(image_url: str | None, fallback: str) -> str:
    """Return *image_url* unless it is missing or blank, else *fallback*."""
    if image_url and image_url.strip():
        return image_url
    return fallback


def build_submit_payload(config: RelayConfig, prompt: str, starting_image: str) -> dict:
    """Build the fixed-shape JSON body for a prediction submission."""
    return {
        "image_urls": [starting_image],
        "type": config.prediction_type,
        "user_prompt": prompt,
        "sub_type": config.prediction_sub_type,
        "aspect_ratio": "",
        "num": "",
    }


def interpret_status(payload: Any) -> PollResult:
    """Reduce one status payload to a :class:`PollResult`.

    The server-side timeout check runs before the results are inspected, so a
    timed-out message wins even when a result entry is present.

    Args:
        payload: Decoded JSON body of the status endpoint.

    Returns:
        The derived poll result.  Unknown shapes are treated as ``PENDING``.
    """
    if not isinstance(payload, dict):
        return PollResult(PollState.PENDING)

    message = str(payload.get("message") or "").lower()
    if "time" in message and "out" in message:
        return PollResult(PollState.SERVER_TIMED_OUT)

    data = payload.get("data")
    results = data.get("results") if isinstance(data, dict) else None
    if not results or not isinstance(results, list) or not isinstance(results[0], dict):
        return PollResult(PollState.PENDING)

    first = results[0]
    status = str(first.get("status") or "")
    if status == "succeeded":
        return PollResult(PollState.SUCCEEDED, url=str(first.get("url") or ""), status=status)
    if status == "failed":
        return PollResult(PollState.FAILED, status=status)
    return PollResult(PollState.PENDING, status=status)


def _decode_json(response: httpx.Response, error_cls: type[RelayError], context: str) -> Any:
    try:
        return response.json()
    except ValueError as exc:
        raise error_cls(f"{context}: invalid JSON response") from exc


# ---------------------------------------------------------------------------
# Client.
# ---------------------------------------------------------------------------


class VisualGPTClient:
    """Client for one upstream generation session.

    Construct a new instance per generation: the cookie (and therefore the
    upstream's notion of the anonymous user) is fixed for the lifetime of the
    instance.

    Attributes:
        anonymous_user_id (str): Random identifier embedded in the cookie.
        cookie (str): Fully rendered cookie header value.
        submit_headers (dict): Headers for the submission call.
        status_headers (dict): Headers for the status calls.
    """

    def __init__(
        self,
        config: RelayConfig,
        http: httpx.AsyncClient,
        *,
        sleep: SleepFunc = asyncio.sleep,
        clock: ClockFunc = time.monotonic,
    ) -> None:
        """Initialise the client.

        Args:
            config: Relay configuration (endpoints, fingerprint, poll budget).
            http: Shared async HTTP client used for every call.
            sleep: Coroutine function used to wait between polls.
            clock: Monotonic clock in seconds used for the poll budget.
        """
        self._config = config
        self._http = http
        self._sleep = sleep
        self._clock = clock

        self.anonymous_user_id = str(uuid.uuid4())
        self.cookie = build_cookie(config.cookie_template, self.anonymous_user_id)
        self.submit_headers = build_submit_headers(config, self.cookie)
        self.status_headers = build_status_headers(config, self.cookie)

    async def submit(self, prompt: str, image_url: str | None = None) -> str:
        """Submit a prediction and return the upstream session id.

        Args:
            prompt: User prompt forwarded verbatim.
            image_url: Optional seed image; blank or missing falls back to
                ``config.fallback_image_url``.

        Returns:
            The non-empty ``session_id`` issued by the upstream.

        Raises:
            UpstreamSubmissionError: On transport failure, non-2xx status
                (carrying that status), or a payload without the success code
                and a session id.
        """
        starting_image = resolve_starting_image(image_url, self._config.fallback_image_url)
        payload = build_submit_payload(self._config, prompt, starting_image)

        logger.info(
            "Submitting prediction request for prompt: %s... with image: %s",
            prompt[:50],
            starting_image,
        )

        try:
            response = await self._http.post(
                self._config.submit_url,
                headers=self.submit_headers,
                json=payload,
            )
        except httpx.HTTPError as exc:
            raise UpstreamSubmissionError(f"Submission request failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamSubmissionError(
                f"Submission failed with HTTP status {response.status_code}",
                status_code=response.status_code,
            )

        data = _decode_json(response, UpstreamSubmissionError, "Submission failed")
        if not isinstance(data, dict):
            data = {}

        body = data.get("data")
        session_id = body.get("session_id") if isinstance(body, dict) else None
        if data.get("code") == self._config.success_code and session_id:
            logger.info("Prediction submitted successfully, session_id: %s", session_id)
            return str(session_id)

        message = data.get("message") or "unknown error"
        logger.error("Submission failed: %s", message)
        raise UpstreamSubmissionError(f"Submission failed: {message}")

    async def check_status(self, session_id: str) -> PollResult:
        """Fetch the status payload once and interpret it.

        Raises:
            UpstreamPollError: On transport failure, non-2xx status (carrying
                that status), or an undecodable body.
        """
        try:
            response = await self._http.get(
                self._config.status_url,
                params={"session_id": session_id},
                headers=self.status_headers,
            )
        except httpx.HTTPError as exc:
            raise UpstreamPollError(f"Status request failed: {exc}") from exc

        if not response.is_success:
            raise UpstreamPollError(
                f"Status check failed with HTTP status {response.status_code}",
                status_code=response.status_code,
            )

        return interpret_status(_decode_json(response, UpstreamPollError, "Status check failed"))

    async def poll(
        self,
        session_id: str,
        timeout_ms: int | None = None,
        interval_ms: int | None = None,
    ) -> str:
        """Poll the status endpoint until the generated image URL is ready.

        The elapsed-time check runs after every non-terminal status, so the
        loop fails with :class:`PollTimeoutError` as soon as a check completes
        past the budget, without one extra sleep.

        Args:
            session_id: Session id returned by :meth:`submit`.
            timeout_ms: Wall-clock budget; defaults to ``config.poll_timeout_ms``.
            interval_ms: Delay between checks; defaults to
                ``config.poll_interval_ms``.

        Returns:
            URL of the generated image on the upstream's storage.

        Raises:
            UpstreamPollError: A status request failed.
            UpstreamTimeoutError: The upstream reported a session timeout.
            GenerationFailedError: The upstream reported failure, or success
                without a URL.
            PollTimeoutError: The budget ran out before a terminal status.
        """
        timeout_ms = self._config.poll_timeout_ms if timeout_ms is None else timeout_ms
        interval_ms = self._config.poll_interval_ms if interval_ms is None else interval_ms

        started = self._clock()
        logger.info("Starting to poll status for session_id: %s", session_id)

        while True:
            result = await self.check_status(session_id)
            if result.status:
                logger.info("Current status: %s", result.status)

            if result.state is PollState.SERVER_TIMED_OUT:
                logger.error("Session timed out on server side")
                raise UpstreamTimeoutError("Session timed out on server side.")

            if result.state is PollState.SUCCEEDED:
                if result.url:
                    logger.info("Image generation succeeded: %s", result.url)
                    return result.url
                logger.error("Succeeded status but URL is empty")
                raise GenerationFailedError("Succeeded status but URL is empty.")

            if result.state is PollState.FAILED:
                logger.error("Image generation failed")
                raise GenerationFailedError("Generation failed.")

            elapsed_ms = (self._clock() - started) * 1000
            if elapsed_ms > timeout_ms:
                logger.error("Timeout waiting for image generation after %sms", timeout_ms)
                raise PollTimeoutError("Timeout waiting for image generation.")

            await self._sleep(interval_ms / 1000)
