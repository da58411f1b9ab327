# core/token_estimation.py
"""Token counting helpers used for brief size statistics."""

from __future__ import annotations

import functools

import structlog
import tiktoken
from config import settings

logger = structlog.get_logger(__name__)


@functools.lru_cache(maxsize=settings.TOKENIZER_CACHE_SIZE)
def _get_tokenizer(model_name: str) -> tiktoken.Encoding | None:
    """
    Gets a tiktoken encoder for the given model name, with caching.
    Tries model-specific encoding, then a default, then returns None.
    """
    try:
        try:
            encoder = tiktoken.encoding_for_model(model_name)
        except KeyError:
            logger.debug(
                "No direct tiktoken encoding for model. Using default.",
                model=model_name,
                encoding=settings.TIKTOKEN_DEFAULT_ENCODING,
            )
            encoder = tiktoken.get_encoding(settings.TIKTOKEN_DEFAULT_ENCODING)
        return encoder
    except Exception:
        logger.error(
            "Could not load a tiktoken encoding. Token counts fall back to a character heuristic.",
            model=model_name,
            exc_info=True,
        )
        return None


def estimate_tokens_from_chars(text: str) -> int:
    """Character-based token estimate."""
    if not text:
        return 0
    return int(len(text) / settings.FALLBACK_CHARS_PER_TOKEN)


def count_tokens(text: str, model_name: str | None = None) -> int:
    """
    Counts the number of tokens in a string for a given model.
    Uses tiktoken with caching and falls back to a character heuristic.
    """
    if not text:
        return 0

    encoder = _get_tokenizer(model_name or settings.TOKENIZER_MODEL)
    if encoder:
        return len(encoder.encode(text, allowed_special="all"))
    return estimate_tokens_from_chars(text)
