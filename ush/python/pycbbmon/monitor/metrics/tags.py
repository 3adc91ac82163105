import re

# Both Windows and POSIX separators collapse to this character
SEPARATOR_SUBSTITUTE = "-"

_INVALID_CHARS = re.compile(r"[^A-Za-z0-9_.-]+")


def sanitize_tag_value(value: str) -> str:
    """
    Make an arbitrary string (usually a plan name or file name) safe to use
    as a tag value.

    Letters, digits, periods, hyphens and underscores are kept. Spaces
    become underscores, slashes and backslashes become hyphens, and
    everything else is stripped.

    Only ASCII letters survive, so a name written entirely in another
    script reduces to underscores or to nothing, and distinct names can
    end up on the same value. See is_degenerate().
    """
    value = value.replace(" ", "_")
    value = value.replace("\\", SEPARATOR_SUBSTITUTE).replace("/", SEPARATOR_SUBSTITUTE)
    return _INVALID_CHARS.sub("", value)


def is_degenerate(sanitized: str) -> bool:
    """True for a sanitized value with nothing but underscores (or nothing at all)."""
    return sanitized.strip("_") == ""


def sanitize_tags(tags: dict) -> dict:
    return {k: sanitize_tag_value(str(v)) for k, v in tags.items()}
