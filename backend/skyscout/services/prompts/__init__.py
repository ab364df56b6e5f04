"""Prompt guides for the flight advisor."""

from functools import lru_cache
from pathlib import Path

_PROMPT_DIR = Path(__file__).parent


@lru_cache(maxsize=None)
def load_prompt(name: str) -> str:
    """Read a guide from this directory (cached after first read)."""
    return (_PROMPT_DIR / name).read_text(encoding="utf-8")
