"""
CORS origins for the forecast API, taken from the environment when set.
"""
from __future__ import annotations

import os
from typing import List, Sequence, Tuple

DEFAULT_EXPLICIT_ORIGINS: Sequence[str] = [
    "http://localhost",
    "http://localhost:8080",
    "http://127.0.0.1:8080",
]

DEFAULT_REGEX_ORIGINS: Sequence[str] = []


def _split_env_list(raw_value: str | None) -> List[str]:
    if raw_value is None:
        return []
    return [entry.strip() for entry in raw_value.split(",") if entry.strip()]


def _env_list_or_default(name: str, default: Sequence[str]) -> List[str]:
    # Unset and blank values both mean "use the defaults".
    candidates = _split_env_list(os.environ.get(name))
    return candidates or list(default)


def get_cors_settings() -> Tuple[List[str], List[str]]:
    """
    Returns the explicit origins and regex-based origins allowed by the server.

    * CORS_ALLOW_ORIGINS controls the explicit list (comma-separated).
    * CORS_ALLOW_ORIGIN_REGEXES controls regex patterns (comma-separated).
    """
    explicit = _env_list_or_default("CORS_ALLOW_ORIGINS", DEFAULT_EXPLICIT_ORIGINS)
    regexes = _env_list_or_default("CORS_ALLOW_ORIGIN_REGEXES", DEFAULT_REGEX_ORIGINS)
    regexes = [pattern for pattern in regexes if pattern != "*"]
    return explicit, regexes


def combine_regex_patterns(patterns: Sequence[str]) -> str | None:
    """
    Folds several patterns into the single regex FastAPI's CORSMiddleware accepts.
    """
    if not patterns:
        return None
    return "|".join(f"(?:{pattern})" for pattern in patterns)
