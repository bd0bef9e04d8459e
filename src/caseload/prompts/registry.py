"""Prompt Registry - Load prompts from Markdown templates.

Templates live next to this module under ``templates/`` and are shipped as
package data. Variables use ``{variable_name}`` placeholders.

Usage:
    from caseload.prompts.registry import get_prompt

    prompt = get_prompt(
        "clinical/session_plan",
        student_name="Student",
        student_age="8",
    )
"""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

import structlog

logger = structlog.get_logger(__name__)

PROMPTS_DIR = Path(__file__).parent / "templates"


def _get_prompt_uncached(key: str) -> str:
    """Load raw prompt from file without caching.

    Args:
        key: Path-like key, e.g., "clinical/session_plan"

    Returns:
        Raw prompt content

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    file_path = PROMPTS_DIR / f"{key}.md"
    if not file_path.exists():
        raise FileNotFoundError(f"Prompt not found: {key} (looked at {file_path})")

    return file_path.read_text(encoding="utf-8")


@lru_cache(maxsize=64)
def _get_cached_prompt(key: str) -> str:
    """Cached version of prompt loading."""
    return _get_prompt_uncached(key)


def get_prompt(key: str, use_cache: bool = True, **variables: object) -> str:
    """Load prompt from file and substitute variables.

    Unknown placeholders are left untouched, so templates may contain
    literal braces (e.g. JSON examples).

    Args:
        key: Path-like key, e.g., "clinical/session_plan"
        use_cache: Whether to use cached version (default True)
        **variables: Variables to substitute, e.g., student_age=8

    Returns:
        Prompt string with variables substituted

    Raises:
        FileNotFoundError: If prompt file doesn't exist
    """
    if use_cache:
        content = _get_cached_prompt(key)
    else:
        content = _get_prompt_uncached(key)

    for var_name, var_value in variables.items():
        content = content.replace(f"{{{var_name}}}", str(var_value))

    return content


def list_prompts() -> list[str]:
    """List all available prompt keys.

    Returns:
        Sorted list of prompt keys (e.g., ["clinical/progress_note", ...])
    """
    if not PROMPTS_DIR.exists():
        logger.warning("prompts.dir_not_found", path=str(PROMPTS_DIR))
        return []

    prompts = []
    for path in PROMPTS_DIR.rglob("*.md"):
        key = path.relative_to(PROMPTS_DIR).with_suffix("").as_posix()
        prompts.append(key)
    return sorted(prompts)


def clear_cache() -> None:
    """Clear the prompt cache.

    Useful for testing or when prompts are modified at runtime.
    """
    _get_cached_prompt.cache_clear()
