"""LLM gateway with response caching, retries and two provider backends."""

from __future__ import annotations

import logging
from dataclasses import dataclass

import anthropic
import openai

from resume_optimizer.cache.llm_cache import LLMCache, make_cache_key
from resume_optimizer.clients.retry import RetryPolicy, with_retry
from resume_optimizer.config import DEFAULT_MODELS, PROVIDERS, AppConfig
from resume_optimizer.errors import InvalidRequest, ProviderError
from resume_optimizer.utils.json_parser import extract_json

logger = logging.getLogger(__name__)

# Status codes that will fail the same way on every attempt
_NON_RETRYABLE_STATUS = {400, 401, 403, 404, 422}


@dataclass(frozen=True)
class LLMMessage:
    role: str  # "user" | "assistant"
    content: str


@dataclass
class LLMRequest:
    messages: list[LLMMessage]
    system_prompt: str = ""
    temperature: float | None = None
    max_tokens: int | None = None
    model: str | None = None
    json_mode: bool = False


@dataclass(frozen=True)
class TokenUsage:
    input_tokens: int
    output_tokens: int

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens


@dataclass(frozen=True)
class LLMResponse:
    """Provider-independent response."""

    content: str
    model: str
    usage: TokenUsage | None = None
    finish_reason: str | None = None


def _last_user_prompt(messages: list[LLMMessage]) -> str:
    for message in reversed(messages):
        if message.role == "user":
            return message.content
    raise InvalidRequest("Request has no user message")


def _to_provider_error(provider: str, exc: Exception) -> ProviderError:
    status = getattr(exc, "status_code", None)
    retryable = status is None or status not in _NON_RETRYABLE_STATUS
    return ProviderError(
        f"{provider} request failed: {exc}",
        provider=provider,
        status_code=status,
        retryable=retryable,
    )


def _from_anthropic(message) -> LLMResponse:
    text = "".join(block.text for block in message.content if block.type == "text")
    usage = None
    if getattr(message, "usage", None) is not None:
        usage = TokenUsage(message.usage.input_tokens, message.usage.output_tokens)
    return LLMResponse(
        content=text,
        model=message.model,
        usage=usage,
        finish_reason=message.stop_reason,
    )


def _from_openai(completion) -> LLMResponse:
    choice = completion.choices[0]
    usage = None
    if getattr(completion, "usage", None) is not None:
        usage = TokenUsage(completion.usage.prompt_tokens, completion.usage.completion_tokens)
    return LLMResponse(
        content=choice.message.content or "",
        model=completion.model,
        usage=usage,
        finish_reason=choice.finish_reason,
    )


class LLMClient:
    """Async chat-completion client for Anthropic or OpenAI.

    The provider, default model and sampling defaults are fixed at
    construction. Responses are cached in the injected ``LLMCache`` and
    provider calls are retried according to ``retry_policy``.
    """

    def __init__(
        self,
        api_key: str | None = None,
        timeout: float | None = None,
        *,
        provider: str = "anthropic",
        model: str | None = None,
        temperature: float = 0.0,
        max_tokens: int = 4096,
        cache: LLMCache | None = None,
        retry_policy: RetryPolicy | None = None,
    ):
        if provider not in PROVIDERS:
            raise InvalidRequest(f"Unknown provider {provider!r}; expected one of {PROVIDERS}")
        kwargs: dict = {}
        if api_key is not None:
            kwargs["api_key"] = api_key
        if timeout is not None:
            kwargs["timeout"] = timeout
        if provider == "anthropic":
            self.client = anthropic.AsyncAnthropic(**kwargs)
        else:
            self.client = openai.AsyncOpenAI(**kwargs)
        self.provider = provider
        self.model = model or DEFAULT_MODELS[provider]
        self.temperature = temperature
        self.max_tokens = max_tokens
        self.cache = cache
        self.retry_policy = retry_policy or RetryPolicy()
        self._token_log: list[tuple[str, int, int]] = []  # (model, input_tokens, output_tokens)

    async def complete(self, request: LLMRequest) -> LLMResponse:
        """Run a chat completion, serving repeated requests from the cache."""
        user_prompt = _last_user_prompt(request.messages)
        model = request.model or self.model
        temperature = self.temperature if request.temperature is None else request.temperature
        max_tokens = request.max_tokens or self.max_tokens

        key = make_cache_key(model, temperature, request.system_prompt, user_prompt)
        if self.cache is not None:
            cached = self.cache.get(key)
            if cached is not None:
                logger.debug("LLM cache hit: model=%s", model)
                return cached

        logger.debug("LLM call: provider=%s model=%s", self.provider, model)

        async def _attempt() -> LLMResponse:
            if self.provider == "anthropic":
                return await self._call_anthropic(request, model, temperature, max_tokens)
            return await self._call_openai(request, model, temperature, max_tokens)

        try:
            response = await with_retry(_attempt, self.retry_policy)
        except Exception:
            logger.error("LLM call failed", exc_info=True)
            raise

        if response.usage is not None:
            logger.debug(
                "LLM response: %d input, %d output tokens",
                response.usage.input_tokens, response.usage.output_tokens,
            )
            self._token_log.append(
                (model, response.usage.input_tokens, response.usage.output_tokens)
            )
        if self.cache is not None:
            self.cache.put(key, response)
        return response

    async def _call_anthropic(
        self, request: LLMRequest, model: str, temperature: float, max_tokens: int,
    ) -> LLMResponse:
        kwargs: dict = {
            "model": model,
            "max_tokens": max_tokens,
            "temperature": temperature,
            "messages": [{"role": m.role, "content": m.content} for m in request.messages],
        }
        if request.system_prompt:
            kwargs["system"] = request.system_prompt
        try:
            message = await self.client.messages.create(**kwargs)
        except anthropic.APIError as exc:
            raise _to_provider_error("anthropic", exc) from exc
        return _from_anthropic(message)

    async def _call_openai(
        self, request: LLMRequest, model: str, temperature: float, max_tokens: int,
    ) -> LLMResponse:
        messages = []
        if request.system_prompt:
            messages.append({"role": "system", "content": request.system_prompt})
        messages.extend({"role": m.role, "content": m.content} for m in request.messages)
        kwargs: dict = {
            "model": model,
            "messages": messages,
            "temperature": temperature,
            "max_tokens": max_tokens,
        }
        if request.json_mode:
            kwargs["response_format"] = {"type": "json_object"}
        try:
            completion = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as exc:
            raise _to_provider_error("openai", exc) from exc
        return _from_openai(completion)

    async def generate(
        self,
        prompt: str,
        system: str = "",
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> LLMResponse:
        """Send a single user prompt and return the normalized response."""
        if not prompt:
            raise InvalidRequest("Prompt must not be empty")
        return await self.complete(
            LLMRequest(
                messages=[LLMMessage(role="user", content=prompt)],
                system_prompt=system,
                temperature=temperature,
                max_tokens=max_tokens,
                model=model,
                json_mode=json_mode,
            )
        )

    async def generate_json(
        self,
        prompt: str,
        system: str = "",
        model: str | None = None,
        temperature: float | None = None,
        max_tokens: int | None = None,
    ) -> dict | list:
        """Send a prompt and parse JSON from response."""
        response = await self.generate(
            prompt=prompt,
            system=system,
            model=model,
            temperature=temperature,
            max_tokens=max_tokens,
            json_mode=True,
        )
        return extract_json(response.content)

    def get_token_summary(self) -> dict:
        """Return accumulated token usage and reset the log."""
        summary = {
            "input": sum(t[1] for t in self._token_log),
            "output": sum(t[2] for t in self._token_log),
            "calls": list(self._token_log),
        }
        self._token_log.clear()
        return summary

    def cache_stats(self) -> dict | None:
        return self.cache.stats() if self.cache is not None else None

    def clear_cache(self) -> int:
        return self.cache.clear() if self.cache is not None else 0


def create_llm_client(config: AppConfig, *, cache: LLMCache | None = None) -> LLMClient:
    """Build a client from application config; API keys come from the environment."""
    return LLMClient(
        timeout=config.llm.timeout,
        provider=config.llm.provider,
        model=config.llm.resolved_model,
        temperature=config.llm.temperature,
        max_tokens=config.llm.max_tokens,
        cache=cache,
        retry_policy=RetryPolicy.from_config(config.retry),
    )
