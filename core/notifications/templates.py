"""Push message copy (messages.yaml): loading, validation and rendering."""

from pathlib import Path

import yaml

MESSAGES_PATH = Path(__file__).parent / "messages.yaml"

# Parts every message type must define; the flex builders read all of them
REQUIRED_PARTS = {
    "course_completion": ("alt_text", "brand", "headline", "instruction", "button_label"),
    "weekly_follow_up": (
        "alt_text",
        "header_label",
        "header_week",
        "greeting",
        "body",
        "course_label",
        "button_label",
    ),
}

_copy: dict[str, dict[str, str]] | None = None


def load_templates(path: Path = MESSAGES_PATH) -> dict[str, dict[str, str]]:
    """
    Read and check message copy. Cached after the first successful load.

    Raises:
        ValueError: If a message type or one of its parts is missing
    """
    global _copy
    if _copy is not None and path == MESSAGES_PATH:
        return _copy

    with open(path, encoding="utf-8") as f:
        loaded = yaml.safe_load(f) or {}

    for message_type, parts in REQUIRED_PARTS.items():
        missing = [p for p in parts if p not in loaded.get(message_type, {})]
        if missing:
            raise ValueError(
                f"{path.name}: {message_type} is missing {', '.join(missing)}"
            )

    if path == MESSAGES_PATH:
        _copy = loaded
    return loaded


def render_message(template: str, context: dict) -> str:
    """
    str.format the template with context.

    Raises:
        KeyError: If a placeholder has no value in context
    """
    return template.format(**context)


def get_message(message_type: str, part: str, context: dict) -> str:
    """Rendered copy for one part, e.g. get_message("weekly_follow_up", "alt_text", {...})."""
    return render_message(load_templates()[message_type][part], context)
