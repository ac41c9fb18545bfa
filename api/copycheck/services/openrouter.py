"""OpenRouter chat-completions client for text and poster checks."""

import asyncio
import base64
import logging
from typing import Any, Dict, List, Optional, Tuple

import httpx

from ..core.config import settings
from ..models.exceptions import UpstreamGenerationFailure

logger = logging.getLogger(__name__)

# (image bytes, content type)
ImageInput = Tuple[bytes, str]


def _headers(api_key: str) -> Dict[str, str]:
    return {
        "Authorization": f"Bearer {api_key}",
        "Content-Type": "application/json",
        "X-Title": "copycheck",
    }


def _extract_message_text(response: Dict[str, Any]) -> str:
    """Extract text content from an OpenRouter-style response."""
    choices = response.get("choices") if isinstance(response, dict) else None
    if not isinstance(choices, list) or not choices:
        return ""
    msg = choices[0].get("message", {}) if isinstance(choices[0], dict) else {}
    content = msg.get("content", "") if isinstance(msg, dict) else ""
    if isinstance(content, str):
        return content
    if isinstance(content, list):
        parts = [p.get("text", "") for p in content if isinstance(p, dict) and "text" in p]
        return "\n".join([p for p in parts if isinstance(p, str) and p])
    return ""


def build_messages(prompt: str, system: Optional[str] = None, image: Optional[ImageInput] = None) -> List[Dict[str, Any]]:
    messages: List[Dict[str, Any]] = []
    if system:
        messages.append({"role": "system", "content": system})
    if image is None:
        messages.append({"role": "user", "content": prompt})
        return messages

    data, content_type = image
    data_url = f"data:{content_type};base64,{base64.b64encode(data).decode('ascii')}"
    messages.append({
        "role": "user",
        "content": [
            {"type": "text", "text": prompt},
            {"type": "image_url", "image_url": {"url": data_url}},
        ],
    })
    return messages


async def health_check() -> bool:
    """Check OpenRouter API reachability with the configured key."""
    if not settings.openrouter_api_key:
        logger.warning("OpenRouter API key not configured")
        return False
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            response = await client.get(
                f"{settings.openrouter_base_url}/models",
                headers=_headers(settings.openrouter_api_key),
            )
            return response.status_code == 200
    except httpx.HTTPError as e:
        logger.error(f"OpenRouter health check failed: {e}")
        return False


async def generate(
    prompt: str,
    image: Optional[ImageInput] = None,
    system: Optional[str] = None,
    **kwargs,
) -> str:
    """Run one generation and return the raw message text.

    Tries the primary model then each fallback, ``openrouter_max_attempts``
    times each with linear backoff. Raises UpstreamGenerationFailure when no
    credential is configured or every attempt failed or came back empty.
    """
    api_key = settings.openrouter_api_key
    if not api_key:
        raise UpstreamGenerationFailure("OPENROUTER_API_KEY is not configured")

    timeout_seconds = max(float(settings.openrouter_timeout), float(settings.min_timeout_seconds))
    payload = {
        "messages": build_messages(prompt, system=system, image=image),
        "max_tokens": kwargs.get("max_tokens", 2000),
        "temperature": kwargs.get("temperature", 0.2),
    }

    model = kwargs.get("model") or settings.openrouter_model
    models_to_try = [model] + [m for m in settings.fallback_models if m != model]
    max_attempts = max(1, settings.openrouter_max_attempts)
    last_err: Optional[Exception] = None
    last_status: Optional[int] = None

    for candidate in models_to_try:
        attempt = 0
        while attempt < max_attempts:
            try:
                logger.debug(f"OpenRouter request: model={candidate}, image={image is not None}")
                async with httpx.AsyncClient(timeout=timeout_seconds) as client:
                    response = await client.post(
                        f"{settings.openrouter_base_url}/chat/completions",
                        headers=_headers(api_key),
                        json={**payload, "model": candidate},
                    )
                if response.status_code != 200:
                    last_status = response.status_code
                    raise UpstreamGenerationFailure(
                        f"OpenRouter API request failed: {response.status_code}",
                        status_code=response.status_code,
                        model=candidate,
                    )
                text = _extract_message_text(response.json()).strip()
                if not text:
                    raise UpstreamGenerationFailure("OpenRouter returned an empty message", model=candidate)
                logger.info(f"OpenRouter call successful using {candidate}")
                return text
            except (httpx.HTTPError, ValueError, UpstreamGenerationFailure) as e:
                last_err = e
                attempt += 1
                logger.warning(f"OpenRouter attempt {attempt}/{max_attempts} with {candidate} failed: {e}")
                if attempt < max_attempts:
                    await _async_sleep(settings.openrouter_backoff_ms * attempt)

    msg = str(last_err) if last_err else "OpenRouter request failed"
    raise UpstreamGenerationFailure(msg, status_code=last_status, model=model)


async def _async_sleep(ms: int) -> None:
    await asyncio.sleep(max(0.0, ms / 1000.0))
