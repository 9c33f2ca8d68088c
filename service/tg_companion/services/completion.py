"""
Completion backends.

Turns a prompt into generated text using an OpenAI-compatible server
(LocalAI or OpenAI proper). Two request styles are supported:

- "chat": POST {base_url}/v1/chat/completions through the openai SDK,
  reply read from choices[0].message.content
- "completion": POST {base_url}/v1/completions with a raw prompt body,
  reply read from choices[0].text

Every call is a single attempt: no retries, BACKEND_TIMEOUT per request.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
import openai
from openai import AsyncOpenAI, Omit

from tg_companion.config import Settings
from tg_companion.logging_config import get_logger

logger = get_logger("completion")

# Matches the openai SDK default; local models can take minutes per reply
BACKEND_TIMEOUT = httpx.Timeout(600.0, connect=5.0)

# The SDK refuses an empty key; a keyless LocalAI gets this plus no header
PLACEHOLDER_API_KEY = "no-key"


class BackendError(Exception):
    """Completion backend call failed."""


class BackendUpstreamError(BackendError):
    """Backend answered with a non-2xx status."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"Completion backend error {status_code}: {body}")


class BackendDecodeError(BackendError):
    """Backend answered 2xx but the body carried no usable completion."""


@dataclass(frozen=True)
class CompletionParameters:
    model: str
    temperature: Optional[float] = None
    top_p: Optional[float] = None
    top_k: Optional[int] = None
    max_context: Optional[int] = None

    @classmethod
    def from_settings(cls, settings: Settings) -> "CompletionParameters":
        return cls(
            model=settings.open_ai_model,
            temperature=settings.open_ai_temperature,
            top_p=settings.open_ai_top_p,
            top_k=settings.open_ai_top_k,
            max_context=settings.open_ai_max_context,
        )

    def sampling(self) -> Dict[str, Any]:
        """Sampling fields that are set, keyed by their wire names."""
        values = {
            "temperature": self.temperature,
            "top_p": self.top_p,
            "top_k": self.top_k,
            "max_tokens": self.max_context,
        }
        return {key: value for key, value in values.items() if value is not None}


def _api_root(base_url: str) -> str:
    return f"{base_url.rstrip('/')}/v1"


def _extract(payload: Any, *path: Any) -> str:
    """Walk choices[0]... in a decoded body, BackendDecodeError if anything is off."""
    node = payload
    try:
        for key in path:
            node = node[key]
    except (KeyError, IndexError, TypeError) as e:
        raise BackendDecodeError(f"Missing content in the response: {e!r}") from e

    if not isinstance(node, str):
        raise BackendDecodeError("Missing content in the response!")
    if not node.strip():
        raise BackendDecodeError("Empty completion in the response")
    return node


class CompletionBackend:
    """Interface shared by both request styles."""

    style = ""

    async def complete(self, prompt: str) -> str:
        raise NotImplementedError

    async def close(self) -> None:
        return None


class ChatCompletionBackend(CompletionBackend):
    """Chat Completions API via the openai SDK."""

    style = "chat"

    def __init__(
        self,
        base_url: str,
        params: CompletionParameters,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.params = params
        self._owns_client = http_client is None
        default_headers = None if api_key else {"Authorization": Omit()}
        self.client = AsyncOpenAI(
            api_key=api_key or PLACEHOLDER_API_KEY,
            base_url=_api_root(base_url),
            max_retries=0,
            timeout=BACKEND_TIMEOUT,
            default_headers=default_headers,
            http_client=http_client,
        )

    async def complete(self, prompt: str) -> str:
        sampling = self.params.sampling()
        # top_k is a LocalAI extension, not part of the SDK signature
        top_k = sampling.pop("top_k", None)
        extra_body = {"top_k": top_k} if top_k is not None else None

        try:
            raw = await self.client.chat.completions.with_raw_response.create(
                model=self.params.model,
                messages=[{"role": "user", "content": prompt}],
                extra_body=extra_body,
                **sampling,
            )
        except openai.APIStatusError as e:
            logger.error(f"Backend returned {e.status_code}: {e.response.text}")
            raise BackendUpstreamError(e.status_code, e.response.text) from e
        except openai.APIConnectionError as e:
            logger.error(f"Backend connection failed: {e}")
            raise BackendError(f"HTTP error: {e}") from e

        try:
            payload = raw.http_response.json()
        except ValueError as e:
            raise BackendDecodeError(f"Invalid JSON from backend: {e}") from e

        return _extract(payload, "choices", 0, "message", "content")

    async def close(self) -> None:
        # AsyncOpenAI.close() would also close a shared http_client
        if self._owns_client:
            await self.client.close()


class TextCompletionBackend(CompletionBackend):
    """Legacy Completions API with a raw prompt, posted with httpx."""

    style = "completion"

    def __init__(
        self,
        base_url: str,
        params: CompletionParameters,
        api_key: Optional[str] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = f"{_api_root(base_url)}/completions"
        self.params = params
        self.api_key = api_key
        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(timeout=BACKEND_TIMEOUT)

    async def complete(self, prompt: str) -> str:
        body = {
            "model": self.params.model,
            "prompt": prompt,
            **self.params.sampling(),
        }

        headers = {"Content-Type": "application/json"}
        if self.api_key:
            headers["Authorization"] = f"Bearer {self.api_key}"

        try:
            response = await self.client.post(self.url, json=body, headers=headers)
        except httpx.HTTPError as e:
            logger.error(f"Backend connection failed: {e}")
            raise BackendError(f"HTTP error: {e}") from e

        if not response.is_success:
            logger.error(f"Backend returned {response.status_code}: {response.text}")
            raise BackendUpstreamError(response.status_code, response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise BackendDecodeError(f"Invalid JSON from backend: {e}") from e

        return _extract(payload, "choices", 0, "text")

    async def close(self) -> None:
        if self._owns_client:
            await self.client.aclose()


def build_backend(
    settings: Settings,
    http_client: Optional[httpx.AsyncClient] = None,
) -> CompletionBackend:
    """Create the backend selected by OPEN_AI_API_STYLE."""
    params = CompletionParameters.from_settings(settings)
    backend_cls = (
        ChatCompletionBackend
        if settings.open_ai_api_style == "chat"
        else TextCompletionBackend
    )

    logger.info(
        f"Completion backend: style={backend_cls.style}, "
        f"url={settings.open_ai_url}, model={params.model}"
    )
    return backend_cls(
        settings.open_ai_url,
        params,
        api_key=settings.open_ai_api_key,
        http_client=http_client,
    )
