"""
Ollama text generation client.

Requests are made with ``requests`` inside ``asyncio.to_thread`` so the event
loop keeps serving other conversations while a generation is in flight.

Failures are reported through three distinct exceptions so the caller can
answer with a matching message:

- :class:`BackendUnavailable` when the connection is refused or dropped,
- :class:`BackendTimeout` when the backend does not answer in time,
- :class:`BackendOther` for everything else.
"""

from __future__ import annotations

import asyncio
from typing import Any, Dict, Set

import requests

from chatwarden.errors import BackendOther, BackendTimeout, BackendUnavailable, GenerationBackendError
from chatwarden.util.logger import get_logger

logger = get_logger("generation_client")


class OllamaGenerationClient:
    """
    Thin client for the Ollama ``/api/tags``, ``/api/pull`` and ``/api/generate`` endpoints.

    Attributes:
        base_url (str): Backend root, e.g. ``http://localhost:11434``.
        timeout (float): Seconds allowed for one generation call.
        pull_timeout (float): Seconds allowed for a model pull.
        availability_timeout (float): Seconds allowed for the health check.
        sampling_options (Dict[str, Any]): Forwarded as ``options`` on every call.
    """

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        pull_timeout: float = 300.0,
        availability_timeout: float = 5.0,
        sampling_options: Dict[str, Any] | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.pull_timeout = pull_timeout
        self.availability_timeout = availability_timeout
        self.sampling_options = dict(sampling_options or {})
        self._session = session or requests.Session()
        self._ready_models: Set[str] = set()
        self._ensure_lock = asyncio.Lock()

    # --------------------------
    # Health and model management
    # --------------------------
    async def is_available(self) -> bool:
        """Return True if ``/api/tags`` answers with HTTP 200."""
        try:
            response = await asyncio.to_thread(
                self._session.get, f"{self.base_url}/api/tags", timeout=self.availability_timeout
            )
        except requests.RequestException as exc:
            logger.error("[GENERATION] Ollama is not available: %s", exc)
            return False
        return response.status_code == 200

    def _list_models_sync(self) -> list[str]:
        response = self._session.get(f"{self.base_url}/api/tags", timeout=self.availability_timeout)
        response.raise_for_status()
        models = response.json().get("models") or []
        return [str(entry.get("name", "")) for entry in models]

    def _pull_model_sync(self, model_id: str) -> None:
        response = self._session.post(
            f"{self.base_url}/api/pull",
            json={"name": model_id, "stream": False},
            timeout=self.pull_timeout,
        )
        response.raise_for_status()

    async def ensure_model(self, model_id: str) -> bool:
        """
        Make sure ``model_id`` is present at the backend, pulling it if needed.

        Success is remembered per model. Failures are logged and reported as
        False; they never raise, so a failed check does not block the
        generation attempt that follows.
        """
        if model_id in self._ready_models:
            return True

        async with self._ensure_lock:
            if model_id in self._ready_models:
                return True
            try:
                names = await asyncio.to_thread(self._list_models_sync)
                if not any(model_id in name for name in names):
                    logger.info("[GENERATION] Pulling model %s…", model_id)
                    await asyncio.to_thread(self._pull_model_sync, model_id)
                    logger.info("[GENERATION] Model %s pulled successfully", model_id)
            except (requests.RequestException, ValueError, AttributeError) as exc:
                logger.error("[GENERATION] Could not ensure model %s: %s", model_id, exc)
                return False

            self._ready_models.add(model_id)
            return True

    # --------------------------
    # Generation
    # --------------------------
    def _generate_sync(self, prompt: str, model_id: str) -> str:
        payload = {
            "model": model_id,
            "prompt": prompt,
            "stream": False,
            "options": self.sampling_options,
        }
        try:
            response = self._session.post(f"{self.base_url}/api/generate", json=payload, timeout=self.timeout)
            response.raise_for_status()
            body = response.json()
        except requests.Timeout as exc:
            raise BackendTimeout(f"generation timed out after {self.timeout}s") from exc
        except requests.ConnectionError as exc:
            raise BackendUnavailable(f"cannot connect to {self.base_url}: {exc}") from exc
        except requests.RequestException as exc:
            raise BackendOther(f"generation request failed: {exc}") from exc
        except ValueError as exc:
            raise BackendOther(f"malformed generation response: {exc}") from exc

        text = body.get("response") if isinstance(body, dict) else None
        if not isinstance(text, str):
            raise BackendOther("generation response has no 'response' text")
        return text

    async def generate(self, prompt: str, model_id: str) -> str:
        """
        Generate a completion for ``prompt``.

        Raises:
            BackendUnavailable: The backend refused the connection.
            BackendTimeout: The call exceeded ``timeout``.
            BackendOther: Any other failure.
        """
        await self.ensure_model(model_id)
        logger.debug("[GENERATION] Generating with %s (%d prompt chars)", model_id, len(prompt))
        try:
            return await asyncio.to_thread(self._generate_sync, prompt, model_id)
        except GenerationBackendError:
            raise
        except Exception as exc:
            raise BackendOther(str(exc)) from exc

    def close(self) -> None:
        self._session.close()
