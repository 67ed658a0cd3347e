"""Completion cleanup — strips markdown fencing from raw model output."""

from config.rules import FENCE_MARKER, FENCE_PATTERNS


def has_fence(raw):
    """Return True if the raw output contains a markdown fence marker."""
    return FENCE_MARKER in raw


def strip_fences(text):
    """Remove every recognised fence marker and trim surrounding whitespace.

    Best-effort textual cleanup: the remaining text is not validated.
    """
    for pattern in FENCE_PATTERNS:
        text = pattern.sub("", text)
    return text.strip()


def clean_completion(raw):
    """Return the cleaned code, or None when no cleanup is needed.

    None means the raw output had no fence at all and stands as-is; the
    server then emits no cleaned-code record.
    """
    if not has_fence(raw):
        return None
    return strip_fences(raw)
