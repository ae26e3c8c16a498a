"""Text-enhancement collaborator: optional prose rewriting of offline beats.

The engine injects an enhancer matching the protocol:

    async def enhance(self, base_text: str, world: World) -> str: ...

NoopEnhancer returns the base text unchanged and is the default, so the
engine is fully functional offline. HttpEnhancer posts a rendered prompt to
a KoboldCpp or OpenAI-compatible completion backend; WIRE_FORMATS maps each
format to its endpoint and result field.

run_enhancement() awaits an enhancement task with a hard timeout. Timeouts,
errors, cancellation of the enhancement call, and blank output all fall
back to the deterministic base text.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Literal, Protocol

import httpx
from pydantic import BaseModel, ConfigDict

from liminal_transit.models import World
from liminal_transit.prompts import enhancement_prompt

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 4.0


# ---------------------------------------------------------------------------
# Protocol: every enhancer must match this signature
# ---------------------------------------------------------------------------

class TextEnhancer(Protocol):
    async def enhance(self, base_text: str, world: World) -> str: ...


# ---------------------------------------------------------------------------
# NoopEnhancer: the offline default
# ---------------------------------------------------------------------------

class NoopEnhancer:
    """Returns the base text as-is. No network calls."""

    async def enhance(self, base_text: str, world: World) -> str:
        return base_text


# ---------------------------------------------------------------------------
# HttpEnhancer: connects to a real backend
# ---------------------------------------------------------------------------

ProviderFormat = Literal["koboldcpp", "openai"]


class WireFormat(BaseModel):
    """Where a completion backend takes its prompt and where it puts the text."""

    model_config = ConfigDict(frozen=True)

    label: str
    path: str
    result_key: str
    sends_model: bool = False


WIRE_FORMATS: dict[ProviderFormat, WireFormat] = {
    "koboldcpp": WireFormat(label="KoboldCpp", path="/api/v1/generate", result_key="results"),
    "openai": WireFormat(
        label="OpenAI-compatible", path="/v1/completions", result_key="choices", sends_model=True,
    ),
}


class HttpEnhancer:
    """Async HTTP client that asks a completion backend to rewrite a beat.

    The beat and a summary of the world are rendered into one prompt and
    sent as {"prompt": ...}; the openai format also names the model. The
    first completion's text is the rewrite.

    Args:
        provider_url:    Base URL of the backend, e.g. "http://localhost:5001".
        api_key:         Bearer token, or empty string if not required.
        provider_format: Key into WIRE_FORMATS. Defaults to "koboldcpp".
        model:           Model identifier, sent only where the format takes one.
        timeout:         HTTP timeout in seconds.
    """

    def __init__(
        self,
        provider_url: str,
        api_key: str = "",
        provider_format: ProviderFormat = "koboldcpp",
        model: str = "",
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._base_url = provider_url.rstrip("/")
        self._api_key = api_key
        self._wire = WIRE_FORMATS[provider_format]
        self._model = model
        self._timeout = timeout

    def _payload(self, base_text: str, world: World) -> tuple[str, dict, dict[str, str]]:
        """URL, JSON body and headers for one rewrite request."""
        body: dict = {"prompt": enhancement_prompt(base_text, world)}
        if self._wire.sends_model and self._model:
            body["model"] = self._model
        headers = {"Content-Type": "application/json"}
        if self._api_key:
            headers["Authorization"] = f"Bearer {self._api_key}"
        return f"{self._base_url}{self._wire.path}", body, headers

    def _rewrite_from(self, data) -> str:
        completions = data.get(self._wire.result_key) if isinstance(data, dict) else None
        first = completions[0] if isinstance(completions, list) and completions else None
        if not isinstance(first, dict) or not isinstance(first.get("text"), str):
            raise EnhancerError(f"Unexpected response format from {self._wire.label} backend")
        return first["text"]

    async def enhance(self, base_text: str, world: World) -> str:
        url, body, headers = self._payload(base_text, world)
        logger.debug("enhance call url=%s base_len=%d", url, len(base_text))

        try:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                resp = await client.post(url, json=body, headers=headers)
                resp.raise_for_status()
        except httpx.ConnectError as e:
            raise EnhancerError(f"Cannot connect to enhancement backend at {self._base_url}") from e
        except httpx.HTTPStatusError as e:
            raise EnhancerError(
                f"Enhancement backend returned HTTP {e.response.status_code}"
            ) from e
        except httpx.TimeoutException as e:
            raise EnhancerError(f"Enhancement backend timed out after {self._timeout}s") from e

        text = self._rewrite_from(resp.json()).strip()
        logger.debug("enhance response len=%d", len(text))
        return text


# ---------------------------------------------------------------------------
# EnhancerError: raised by HttpEnhancer for all connection and protocol failures
# ---------------------------------------------------------------------------

class EnhancerError(RuntimeError):
    """Raised when the enhancement backend cannot be reached or returns an error."""


# ---------------------------------------------------------------------------
# Fallback wrapper
# ---------------------------------------------------------------------------

async def run_enhancement(
    task: asyncio.Future[str],
    base_text: str,
    timeout: float = DEFAULT_TIMEOUT,
) -> tuple[str, bool]:
    """Await an enhancement task with a timeout.

    Returns (text, enhanced). Any failure of the enhancement itself yields
    (base_text, False). Cancellation of the caller is re-raised; cancellation
    of the task alone is treated as a failure.
    """
    try:
        text = await asyncio.wait_for(task, timeout)
    except asyncio.CancelledError:
        current = asyncio.current_task()
        if current is not None and current.cancelling():
            raise
        logger.warning("enhancement cancelled; using offline text")
        return base_text, False
    except asyncio.TimeoutError:
        logger.warning("enhancement timed out after %.1fs; using offline text", timeout)
        return base_text, False
    except Exception as e:  # any collaborator failure downgrades to offline
        logger.warning("enhancement failed (%s); using offline text", e)
        return base_text, False

    if not isinstance(text, str) or not text.strip():
        logger.warning("enhancement returned blank text; using offline text")
        return base_text, False
    return text.strip(), True

