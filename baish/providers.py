"""Model provider layer.

Each provider translates a :class:`~baish.models.ResolvedConfig` and a
natural-language prompt into one HTTP request against a hosted model
API, then hands the returned text to :func:`baish.normalizer.normalize`.
All providers implement the ``BaseProvider`` interface with a
``generate`` method that returns a
:class:`~baish.models.GenerationOutput`.

Supported providers:

* ``OpenAIProvider`` – the OpenAI chat-completions contract
  (``POST {base_url}/chat/completions`` with a bearer token).
* ``OpenRouterProvider`` – same contract plus OpenRouter's attribution
  headers.
* ``VercelProvider`` – same contract plus the Vercel AI Gateway key
  header.
* ``AnthropicProvider`` – the Anthropic messages contract
  (``POST {base_url}/v1/messages`` with ``x-api-key``).

The set is closed: :data:`PROVIDERS` maps every
:class:`~baish.models.Provider` member to exactly one class, and
:func:`generate_once` is the only dispatch point.  Requests are made
once with temperature 0; nothing here retries.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List

import httpx

from .errors import MalformedResponse, NoTextContent, RequestFailed
from .models import GenerationOutput, Provider, ResolvedConfig
from .normalizer import normalize

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "You convert natural language intent into exactly one bash command. "
    "Return JSON only with keys: command, explanation, safety. "
    "safety must be one of safe|caution|risky. "
    "command must be plain bash (no backticks, no markdown, no leading $). "
    "Do not wrap the JSON in markdown fences and do not chain several commands. "
    "Keep commands concise and practical for macOS/Linux."
)

ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_MAX_TOKENS = 300
OPENROUTER_REFERER = "https://github.com/baish/baish"
OPENROUTER_TITLE = "baish"
DEFAULT_TIMEOUT = 60.0


def build_client(timeout: float = DEFAULT_TIMEOUT, **kwargs: Any) -> httpx.Client:
    """Create the shared HTTP client used for every provider request."""
    return httpx.Client(timeout=httpx.Timeout(timeout), **kwargs)


def user_message(prompt: str) -> str:
    return f"User request: {prompt}"


def _endpoint(base_url: str, path: str) -> str:
    return base_url.rstrip("/") + path


def _post_json(
    client: httpx.Client,
    url: str,
    headers: Dict[str, str],
    body: Dict[str, Any],
) -> Any:
    """POST ``body`` and return the decoded JSON envelope.

    :raises RequestFailed: On transport errors and non-2xx statuses.
    :raises MalformedResponse: When the response body is not JSON.
    """
    logger.debug("POST %s (model=%s)", url, body.get("model"))
    try:
        response = client.post(url, headers=headers, json=body)
    except (httpx.HTTPError, httpx.InvalidURL) as exc:
        raise RequestFailed(f"request failed: {exc}") from exc
    if response.is_error:
        detail = response.text.strip()[:300]
        raise RequestFailed(
            f"request failed: HTTP {response.status_code}: {detail}",
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as exc:
        raise MalformedResponse("provider returned a non-JSON response") from exc


class BaseProvider:
    """Abstract base class for all providers."""

    provider: Provider

    def generate(
        self,
        client: httpx.Client,
        config: ResolvedConfig,
        prompt: str,
    ) -> GenerationOutput:
        """Return a normalised command for ``prompt``.

        Subclasses must implement this method and raise
        :class:`~baish.errors.RequestFailed` or
        :class:`~baish.errors.MalformedResponse` on failure.
        """
        raise NotImplementedError

    def models_url(self, base_url: str) -> str:
        return _endpoint(base_url, "/models")

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def list_models(
        self,
        client: httpx.Client,
        base_url: str,
        api_key: str,
    ) -> List[str]:
        """Return the model ids the backend advertises, sorted and unique."""
        url = self.models_url(base_url)
        logger.debug("GET %s", url)
        try:
            response = client.get(url, headers=self.auth_headers(api_key))
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise RequestFailed(f"model listing failed: {exc}") from exc
        if response.is_error:
            raise RequestFailed(
                f"model listing failed: HTTP {response.status_code}",
                status_code=response.status_code,
            )
        try:
            payload = response.json()
        except ValueError as exc:
            raise MalformedResponse("model listing returned a non-JSON response") from exc
        items = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(items, list):
            raise MalformedResponse("model listing has no 'data' array")
        ids = {item["id"] for item in items if isinstance(item, dict) and isinstance(item.get("id"), str)}
        return sorted(ids)


class OpenAIProvider(BaseProvider):
    """Provider for the OpenAI chat-completions API and compatible gateways."""

    provider = Provider.OPENAI

    def extra_headers(self, config: ResolvedConfig) -> Dict[str, str]:
        """Headers added on top of bearer auth.  None for plain OpenAI."""
        return {}

    def generate(
        self,
        client: httpx.Client,
        config: ResolvedConfig,
        prompt: str,
    ) -> GenerationOutput:
        url = _endpoint(config.base_url, "/chat/completions")
        body = {
            "model": config.model,
            "temperature": 0,
            "messages": [
                {"role": "system", "content": SYSTEM_PROMPT},
                {"role": "user", "content": user_message(prompt)},
            ],
        }
        headers = {"Content-Type": "application/json"}
        headers.update(self.auth_headers(config.api_key))
        headers.update(self.extra_headers(config))
        payload = _post_json(client, url, headers, body)
        return normalize(self._message_content(payload))

    @staticmethod
    def _message_content(payload: Any) -> str:
        try:
            content = payload["choices"][0]["message"]["content"]
        except (KeyError, IndexError, TypeError) as exc:
            raise MalformedResponse("response has no choices[0].message.content") from exc
        if not isinstance(content, str):
            raise MalformedResponse("choices[0].message.content is not a string")
        return content


class OpenRouterProvider(OpenAIProvider):
    """OpenRouter: OpenAI contract plus attribution headers."""

    provider = Provider.OPENROUTER

    def extra_headers(self, config: ResolvedConfig) -> Dict[str, str]:
        return {"HTTP-Referer": OPENROUTER_REFERER, "X-Title": OPENROUTER_TITLE}


class VercelProvider(OpenAIProvider):
    """Vercel AI Gateway: OpenAI contract plus the gateway key header."""

    provider = Provider.VERCEL

    def extra_headers(self, config: ResolvedConfig) -> Dict[str, str]:
        return {"X-Vercel-AI-Gateway-Api-Key": config.api_key}


class AnthropicProvider(BaseProvider):
    """Provider for the Anthropic messages API.

    The response ``content`` is a list of typed blocks; the first block
    of type ``text`` carries the model output.
    """

    provider = Provider.ANTHROPIC

    def auth_headers(self, api_key: str) -> Dict[str, str]:
        return {"x-api-key": api_key, "anthropic-version": ANTHROPIC_VERSION}

    def models_url(self, base_url: str) -> str:
        return _endpoint(base_url, "/v1/models")

    def generate(
        self,
        client: httpx.Client,
        config: ResolvedConfig,
        prompt: str,
    ) -> GenerationOutput:
        url = _endpoint(config.base_url, "/v1/messages")
        body = {
            "model": config.model,
            "max_tokens": ANTHROPIC_MAX_TOKENS,
            "temperature": 0,
            "system": SYSTEM_PROMPT,
            "messages": [{"role": "user", "content": user_message(prompt)}],
        }
        headers = {"Content-Type": "application/json"}
        headers.update(self.auth_headers(config.api_key))
        payload = _post_json(client, url, headers, body)
        return normalize(self._text_content(payload))

    @staticmethod
    def _text_content(payload: Any) -> str:
        blocks = payload.get("content") if isinstance(payload, dict) else None
        if not isinstance(blocks, list):
            raise MalformedResponse("response has no content array")
        for block in blocks:
            if isinstance(block, dict) and block.get("type") == "text":
                text = block.get("text")
                if isinstance(text, str):
                    return text
        raise NoTextContent("no text content returned")


PROVIDERS: Dict[Provider, BaseProvider] = {
    Provider.OPENAI: OpenAIProvider(),
    Provider.OPENROUTER: OpenRouterProvider(),
    Provider.VERCEL: VercelProvider(),
    Provider.ANTHROPIC: AnthropicProvider(),
}

_unmapped = set(Provider) - set(PROVIDERS)
if _unmapped:
    raise RuntimeError(f"providers without an implementation: {_unmapped}")


def get_provider(provider: Provider) -> BaseProvider:
    """Return the provider implementation for ``provider``.

    :param provider: A member of the closed :class:`Provider` set.
    :raises ValueError: If ``provider`` is not a :class:`Provider`.
    """
    try:
        return PROVIDERS[Provider(provider)]
    except (KeyError, ValueError) as exc:
        raise ValueError(f"Unknown provider: {provider}") from exc


def generate_once(
    client: httpx.Client,
    config: ResolvedConfig,
    prompt: str,
) -> GenerationOutput:
    """Dispatch one generation request to the configured provider."""
    return get_provider(config.provider).generate(client, config, prompt)


def list_models(
    client: httpx.Client,
    provider: Provider,
    base_url: str,
    api_key: str,
) -> List[str]:
    return get_provider(provider).list_models(client, base_url, api_key)
