"""Task title normalization shared by analysis and clustering."""

import re

PLACEHOLDER_PATTERN = re.compile(r"\$\{story\.(title|id|description)\}")
VERB_PREFIX_PATTERN = re.compile(
    r"^(task|implement|create|build|design|test|fix)\b\s*:?\s*",
    re.IGNORECASE,
)
WHITESPACE_PATTERN = re.compile(r"\s+")
_SLUG_INVALID_PATTERN = re.compile(r"[^a-z0-9\s-]")

MAX_TASK_ID_LENGTH = 30


def normalize_title(title: str) -> str:
    """Strip placeholders and leading verbs so wording noise does not split clusters."""
    text = PLACEHOLDER_PATTERN.sub("", title).strip()
    text = VERB_PREFIX_PATTERN.sub("", text)
    return WHITESPACE_PATTERN.sub(" ", text).strip().lower()


def slugify_task_id(title: str, index: int) -> str:
    """Stable task id from a title; falls back to task-{index + 1}."""
    text = PLACEHOLDER_PATTERN.sub("", title.lower()).strip()
    text = VERB_PREFIX_PATTERN.sub("", text)
    text = _SLUG_INVALID_PATTERN.sub("", text)
    text = WHITESPACE_PATTERN.sub("-", text.strip())
    slug = re.sub(r"-+", "-", text).strip("-")

    if not slug:
        return f"task-{index + 1}"
    return slug[:MAX_TASK_ID_LENGTH].rstrip("-")
