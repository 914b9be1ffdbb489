"""
AI provider registry and the single entry point used by every AI feature.

Each user picks one active provider and may store a key per provider. When
the active provider has no key, requests fall back to the platform Gemini
key from GEMINI_API_KEY.
"""

import logging
import os
from typing import Any, Dict, List, Optional

import requests
from pydantic import BaseModel

from ..errors import AiProviderError
from ..models.enums import AiProvider
from ..schemas import CamelModel

logger = logging.getLogger(__name__)

DEFAULT_GEMINI_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_CUSTOM_BASE_URL = "http://localhost:11434/v1"
ANTHROPIC_MESSAGES_URL = "https://api.anthropic.com/v1/messages"
ANTHROPIC_VERSION = "2023-06-01"
ANTHROPIC_DEFAULT_MAX_TOKENS = 4096
OPENROUTER_DEFAULT_MAX_TOKENS = 1024
OPENROUTER_HEADERS = {"HTTP-Referer": "https://eduassess.ai", "X-Title": "EduAssess AI"}


class ProviderConfig(BaseModel):
    label: str
    description: str
    docs_url: str
    default_model: str
    models: List[str]
    key_prefix: Optional[str] = None
    base_url: Optional[str] = None


PROVIDER_CONFIGS: Dict[AiProvider, ProviderConfig] = {
    AiProvider.gemini: ProviderConfig(
        label="Google Gemini",
        description="Google's Gemini models via AI Studio",
        docs_url="https://aistudio.google.com/app/apikey",
        default_model="gemini-2.5-flash",
        models=["gemini-2.5-flash", "gemini-2.5-pro", "gemini-2.0-flash", "gemini-1.5-pro"],
        key_prefix="AIza",
    ),
    AiProvider.openai: ProviderConfig(
        label="OpenAI",
        description="GPT-4o and GPT-4 models via OpenAI API",
        docs_url="https://platform.openai.com/api-keys",
        default_model="gpt-4o-mini",
        models=["gpt-4o-mini", "gpt-4o", "gpt-4-turbo", "gpt-3.5-turbo"],
        key_prefix="sk-",
        base_url="https://api.openai.com/v1",
    ),
    AiProvider.openrouter: ProviderConfig(
        label="OpenRouter",
        description="Access many hosted models from one unified API",
        docs_url="https://openrouter.ai/keys",
        default_model="moonshotai/kimi-k2",
        models=[
            "moonshotai/kimi-k2",
            "google/gemini-flash-1.5",
            "meta-llama/llama-3.1-70b-instruct",
            "anthropic/claude-3.5-sonnet",
            "anthropic/claude-3.5-haiku",
            "openai/gpt-4o",
            "openai/gpt-4o-mini",
            "mistralai/mixtral-8x7b-instruct",
        ],
        key_prefix="sk-or-",
        base_url="https://openrouter.ai/api/v1",
    ),
    AiProvider.grok: ProviderConfig(
        label="Grok (xAI)",
        description="Grok models by xAI",
        docs_url="https://console.x.ai/",
        default_model="grok-3-mini",
        models=["grok-3-mini", "grok-3", "grok-2"],
        key_prefix="xai-",
        base_url="https://api.x.ai/v1",
    ),
    AiProvider.kimi: ProviderConfig(
        label="Kimi K2 (Moonshot AI)",
        description="Kimi K2 mixture-of-experts model",
        docs_url="https://platform.moonshot.ai/",
        default_model="kimi-k2",
        models=["kimi-k2", "moonshot-v1-128k", "moonshot-v1-32k"],
        base_url="https://api.moonshot.ai/v1",
    ),
    AiProvider.anthropic: ProviderConfig(
        label="Anthropic Claude",
        description="Claude models via Anthropic API",
        docs_url="https://console.anthropic.com/keys",
        default_model="claude-3-5-haiku-20241022",
        models=["claude-3-5-haiku-20241022", "claude-3-5-sonnet-20241022", "claude-3-opus-20240229"],
        key_prefix="sk-ant-",
    ),
    AiProvider.custom: ProviderConfig(
        label="Custom (OpenAI-compatible)",
        description="Any OpenAI-compatible endpoint (Ollama, LM Studio, vLLM)",
        docs_url="https://platform.openai.com/docs/api-reference",
        default_model="gpt-3.5-turbo",
        models=[],
        base_url=DEFAULT_CUSTOM_BASE_URL,
    ),
}

OPENAI_COMPATIBLE = {AiProvider.openai, AiProvider.openrouter, AiProvider.grok, AiProvider.kimi, AiProvider.custom}


class ProviderCredentials(CamelModel):
    """Provider selection plus per-provider keys, as stored on a user."""
    active_ai_provider: Optional[AiProvider] = AiProvider.gemini
    gemini_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None
    openrouter_api_key: Optional[str] = None
    grok_api_key: Optional[str] = None
    kimi_api_key: Optional[str] = None
    anthropic_api_key: Optional[str] = None
    custom_api_key: Optional[str] = None
    custom_api_base_url: Optional[str] = None
    custom_api_model: Optional[str] = None


class ProviderSelection(BaseModel):
    provider: AiProvider
    api_key: Optional[str] = None
    base_url: Optional[str] = None
    model: str
    platform_fallback: bool = False


class GenerationResult(CamelModel):
    text: str
    provider: AiProvider
    model: str


def _request_timeout() -> float:
    return float(os.getenv("AI_REQUEST_TIMEOUT", "60"))


def platform_key_available() -> bool:
    return bool(os.getenv("GEMINI_API_KEY"))


def resolve_provider(user: Any = None, model: Optional[str] = None, allow_fallback: bool = True) -> ProviderSelection:
    """Pick the provider, key, endpoint and model for a user's request."""
    provider = AiProvider(getattr(user, "active_ai_provider", None) or AiProvider.gemini)
    config = PROVIDER_CONFIGS[provider]
    api_key = getattr(user, f"{provider.value}_api_key", None)

    if provider == AiProvider.custom:
        # Local endpoints commonly run without a key
        return ProviderSelection(
            provider=provider,
            api_key=api_key or None,
            base_url=getattr(user, "custom_api_base_url", None) or DEFAULT_CUSTOM_BASE_URL,
            model=model or getattr(user, "custom_api_model", None) or config.default_model,
        )

    if api_key:
        return ProviderSelection(
            provider=provider,
            api_key=api_key,
            base_url=config.base_url,
            model=model or config.default_model,
        )

    platform_key = os.getenv("GEMINI_API_KEY") if allow_fallback else None
    if not platform_key:
        raise AiProviderError(
            f"No API key configured for {config.label} and no platform key is available",
            provider=provider.value,
        )
    gemini = PROVIDER_CONFIGS[AiProvider.gemini]
    return ProviderSelection(
        provider=AiProvider.gemini,
        api_key=platform_key,
        base_url=os.getenv("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL,
        model=(model if provider == AiProvider.gemini and model else gemini.default_model),
        platform_fallback=True,
    )


def _post(selection: ProviderSelection, url: str, headers: dict, body: dict) -> dict:
    try:
        response = requests.post(url, json=body, headers=headers, timeout=_request_timeout())
    except requests.RequestException as e:
        logger.error(f"{selection.provider.value} request failed: {e}")
        raise AiProviderError(f"{selection.provider.value} request failed: {e}", provider=selection.provider.value) from e

    if response.status_code < 200 or response.status_code >= 300:
        logger.error(f"{selection.provider.value} API error {response.status_code}")
        raise AiProviderError(
            f"{selection.provider.value} API error {response.status_code}: {response.text[:200]}",
            provider=selection.provider.value,
            status_code=response.status_code,
        )
    try:
        return response.json()
    except ValueError as e:
        raise AiProviderError(f"{selection.provider.value} returned invalid JSON", provider=selection.provider.value) from e


def _gemini_parts(messages: List[dict]) -> List[dict]:
    parts = []
    for message in messages:
        content = message.get("content")
        if isinstance(content, str):
            parts.append({"text": content})
            continue
        for part in content or []:
            if part.get("type") == "text":
                parts.append({"text": part.get("text", "")})
            elif part.get("type") == "image_url":
                url = part.get("image_url", {}).get("url", "")
                if url.startswith("data:") and "," in url:
                    header, data = url.split(",", 1)
                    mime_type = header.replace("data:", "").replace(";base64", "")
                    parts.append({"inlineData": {"mimeType": mime_type, "data": data}})
    return parts


def _call_gemini(selection, messages, max_tokens, temperature, json_mode) -> str:
    base_url = selection.base_url or os.getenv("GEMINI_BASE_URL") or DEFAULT_GEMINI_BASE_URL
    url = f"{base_url.rstrip('/')}/models/{selection.model}:generateContent"
    # System prompt goes first so it leads the single user turn
    ordered = [m for m in messages if m.get("role") == "system"] + [m for m in messages if m.get("role") != "system"]
    body: Dict[str, Any] = {"contents": [{"role": "user", "parts": _gemini_parts(ordered)}]}
    generation_config = {}
    if max_tokens:
        generation_config["maxOutputTokens"] = max_tokens
    if temperature is not None:
        generation_config["temperature"] = temperature
    if json_mode:
        generation_config["responseMimeType"] = "application/json"
    if generation_config:
        body["generationConfig"] = generation_config

    data = _post(selection, url, {"Content-Type": "application/json", "x-goog-api-key": selection.api_key}, body)
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = (candidates[0].get("content") or {}).get("parts") or []
    return "".join(part.get("text", "") for part in parts)


def _call_openai_compatible(selection, messages, max_tokens, temperature, json_mode) -> str:
    body: Dict[str, Any] = {"model": selection.model, "messages": messages}
    if selection.provider == AiProvider.openrouter:
        max_tokens = max_tokens or OPENROUTER_DEFAULT_MAX_TOKENS
    if max_tokens:
        body["max_tokens"] = max_tokens
    if temperature is not None:
        body["temperature"] = temperature
    if json_mode:
        body["response_format"] = {"type": "json_object"}

    headers = {"Content-Type": "application/json"}
    if selection.api_key:
        headers["Authorization"] = f"Bearer {selection.api_key}"
    if selection.provider == AiProvider.openrouter:
        headers.update(OPENROUTER_HEADERS)

    data = _post(selection, f"{selection.base_url.rstrip('/')}/chat/completions", headers, body)
    choices = data.get("choices") or []
    if not choices:
        return ""
    return (choices[0].get("message") or {}).get("content") or ""


def _call_anthropic(selection, messages, max_tokens, temperature, json_mode) -> str:
    system = next((m.get("content") for m in messages if m.get("role") == "system"), None)
    body: Dict[str, Any] = {
        "model": selection.model,
        "max_tokens": max_tokens or ANTHROPIC_DEFAULT_MAX_TOKENS,
        "messages": [m for m in messages if m.get("role") != "system"],
    }
    if isinstance(system, str):
        body["system"] = system
    if temperature is not None:
        body["temperature"] = temperature

    headers = {
        "Content-Type": "application/json",
        "x-api-key": selection.api_key or "",
        "anthropic-version": ANTHROPIC_VERSION,
    }
    data = _post(selection, ANTHROPIC_MESSAGES_URL, headers, body)
    content = data.get("content") or []
    if not content:
        return ""
    return content[0].get("text", "")


def generate_with_provider(
    messages: List[dict],
    user: Any = None,
    model: Optional[str] = None,
    max_tokens: Optional[int] = None,
    temperature: Optional[float] = None,
    json_mode: bool = False,
    allow_fallback: bool = True,
) -> GenerationResult:
    """
    Send chat-style messages to the user's active provider.

    Args:
        messages: [{"role": "system"|"user"|"assistant", "content": str or parts}]
        user: anything carrying the provider selection and key attributes
        model: overrides the provider's default model

    Raises:
        AiProviderError: on network errors, non-2xx responses or missing keys
    """
    selection = resolve_provider(user, model, allow_fallback=allow_fallback)
    logger.info(
        f"AI request via {selection.provider.value} ({selection.model})"
        + (" using platform key" if selection.platform_fallback else "")
    )

    if selection.provider == AiProvider.gemini:
        text = _call_gemini(selection, messages, max_tokens, temperature, json_mode)
    elif selection.provider == AiProvider.anthropic:
        text = _call_anthropic(selection, messages, max_tokens, temperature, json_mode)
    elif selection.provider in OPENAI_COMPATIBLE:
        text = _call_openai_compatible(selection, messages, max_tokens, temperature, json_mode)
    else:
        raise AiProviderError(f"Unsupported provider: {selection.provider.value}")

    return GenerationResult(text=text, provider=selection.provider, model=selection.model)


def test_provider_key(provider: AiProvider, keys: Dict[str, Any]) -> Dict[str, Any]:
    """Send a tiny prompt with the given keys; report success, model and any error."""
    credentials = ProviderCredentials(**{**keys, "active_ai_provider": provider})
    try:
        result = generate_with_provider(
            [{"role": "user", "content": 'Reply with just the word "OK"'}],
            credentials,
            max_tokens=10,
            allow_fallback=False,
        )
        return {"success": True, "model": result.model, "provider": provider.value}
    except AiProviderError as e:
        return {"success": False, "model": "", "provider": provider.value, "error": str(e)}


