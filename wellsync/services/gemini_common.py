"""
Shared helpers for Gemini: run the blocking SDK calls in a threadpool so they
do not block the event loop, with a timeout. Retries on transient errors
(429, 5xx) only when gemini_max_attempts > 1; the default is a single attempt.
"""
from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from typing import Any

import google.generativeai as genai
from starlette.concurrency import run_in_threadpool

from wellsync.config import settings

logger = logging.getLogger(__name__)

RETRYABLE_STATUS_PATTERN = re.compile(r"\b(429|5\d{2})\b")


class GeminiNotConfigured(RuntimeError):
    pass


def _is_retryable_error(exc: BaseException) -> bool:
    """True if the exception looks like 429 or 5xx."""
    msg = (getattr(exc, "message", None) or str(exc)) if exc else ""
    return bool(RETRYABLE_STATUS_PATTERN.search(msg))


def make_model(model_name: str | None = None, api_key: str | None = None):
    """GenerativeModel configured with the API key from settings (or the given one)."""
    key = api_key if api_key is not None else settings.google_gemini_api_key
    if not key:
        raise GeminiNotConfigured("GOOGLE_GEMINI_API_KEY is not set")
    genai.configure(api_key=key)
    return genai.GenerativeModel(model_name or settings.gemini_model)


async def run_gemini(call: Callable[[], Any]) -> Any:
    """Run a blocking Gemini call (generate_content, chat.send_message) with timeout."""
    timeout = getattr(settings, "gemini_request_timeout_seconds", 90) or 90
    max_attempts = max(1, settings.gemini_max_attempts)
    for attempt in range(max_attempts):
        try:
            return await asyncio.wait_for(run_in_threadpool(call), timeout=float(timeout))
        except asyncio.TimeoutError:
            logger.warning("Gemini request timed out after %ss (attempt %d)", timeout, attempt + 1)
            if attempt == max_attempts - 1:
                raise
            await asyncio.sleep(2 ** attempt)
        except Exception as e:
            if attempt < max_attempts - 1 and _is_retryable_error(e):
                delay = 2 ** attempt
                logger.warning("Gemini request failed (attempt %d), retrying in %ss: %s", attempt + 1, delay, e)
                await asyncio.sleep(delay)
            else:
                raise
    raise RuntimeError("run_gemini: unexpected exit")


def response_text(response) -> str | None:
    """response.text, or None when the response carries no text (blocked, empty)."""
    if response is None:
        return None
    try:
        return response.text or None
    except ValueError:
        return None


def error_text(exc: BaseException) -> str:
    """User-visible "Error: ..." string; timeouts carry no message, so fall back to the class name."""
    return f"Error: {str(exc) or type(exc).__name__}"
