"""
LINE Flex message builders for checkpoint notifications.

Pure functions: (course title, course id, week number, LIFF id) -> message
dict ready for the multicast "messages" array. No I/O beyond the cached
messages.yaml copy.

Docs: https://developers.line.biz/en/docs/messaging-api/flex-message-elements/
"""

from core.constants import BASE_COLOR, CHECKPOINT_COLORS
from core.notifications.templates import get_message
from core.notifications.urls import build_course_liff_url

# LINE rejects altText longer than 400 characters
ALT_TEXT_MAX_LENGTH = 400

TEXT_PRIMARY = "#1f2937"
TEXT_SECONDARY = "#4b5563"
TEXT_MUTED = "#9ca3af"
HEADER_TEXT = "#ffffff"


def get_checkpoint_color(week_number: int) -> str:
    """Accent colour for a follow-up week, BASE_COLOR for anything unmapped."""
    return CHECKPOINT_COLORS.get(week_number, BASE_COLOR)


def _alt_text(text: str) -> str:
    if len(text) <= ALT_TEXT_MAX_LENGTH:
        return text
    return text[: ALT_TEXT_MAX_LENGTH - 1] + "…"


def _text(text: str, **style) -> dict:
    return {"type": "text", "text": text, **style}


def _box(layout: str, contents: list[dict], **style) -> dict:
    return {"type": "box", "layout": layout, "contents": contents, **style}


def _bubble(header: dict, body: dict, button_label: str, uri: str, color: str) -> dict:
    return {
        "type": "bubble",
        "size": "mega",
        "header": header,
        "body": body,
        "footer": _box(
            "vertical",
            [
                {
                    "type": "button",
                    "action": {"type": "uri", "label": button_label, "uri": uri},
                    "style": "primary",
                    "color": color,
                    "height": "md",
                }
            ],
            paddingAll="20px",
        ),
        "styles": {"footer": {"separator": True}},
    }


def build_course_completion_message(
    course_title: str,
    course_id: str,
    liff_id: str | None = None,
) -> dict:
    """Week 0 message, sent when a course is marked finished."""
    context = {"course_title": course_title}
    uri = build_course_liff_url(course_id, liff_id)

    def copy(part: str) -> str:
        return get_message("course_completion", part, context)

    header = _box(
        "vertical",
        [
            _box(
                "horizontal",
                [
                    _text("🎓", size="xxl", flex=0),
                    _text(
                        copy("brand"),
                        weight="bold",
                        size="lg",
                        color=HEADER_TEXT,
                        margin="md",
                        gravity="center",
                    ),
                ],
            )
        ],
        backgroundColor=BASE_COLOR,
        paddingAll="20px",
    )
    body = _box(
        "vertical",
        [
            _text(copy("headline"), weight="bold", size="xl", color=TEXT_PRIMARY),
            _text(
                course_title,
                size="md",
                color=BASE_COLOR,
                weight="bold",
                margin="md",
                wrap=True,
            ),
            {"type": "separator", "margin": "xl"},
            _box(
                "horizontal",
                [
                    _text("📋", size="lg", flex=0),
                    _text(
                        copy("instruction"),
                        size="sm",
                        color=TEXT_SECONDARY,
                        wrap=True,
                        margin="md",
                    ),
                ],
                margin="xl",
            ),
        ],
        paddingAll="20px",
    )

    return {
        "type": "flex",
        "altText": _alt_text(copy("alt_text")),
        "contents": _bubble(header, body, copy("button_label"), uri, BASE_COLOR),
    }


def build_weekly_follow_up_message(
    course_title: str,
    course_id: str,
    week_number: int,
    liff_id: str | None = None,
) -> dict:
    """Follow-up reminder for weeks 2/4/6/8, accent colour per week."""
    context = {"course_title": course_title, "week_number": week_number}
    uri = build_course_liff_url(course_id, liff_id)
    color = get_checkpoint_color(week_number)

    def copy(part: str) -> str:
        return get_message("weekly_follow_up", part, context)

    header = _box(
        "vertical",
        [
            _box(
                "horizontal",
                [
                    _text("📊", size="xxl", flex=0),
                    _box(
                        "vertical",
                        [
                            _text(
                                copy("header_label"),
                                weight="bold",
                                size="md",
                                color=HEADER_TEXT,
                            ),
                            _text(
                                copy("header_week"),
                                weight="bold",
                                size="xxl",
                                color=HEADER_TEXT,
                            ),
                        ],
                        margin="lg",
                    ),
                ],
                alignItems="center",
            )
        ],
        backgroundColor=color,
        paddingAll="20px",
    )
    body = _box(
        "vertical",
        [
            _text(copy("greeting"), weight="bold", size="lg", color=TEXT_PRIMARY),
            _text(
                copy("body"), size="sm", color=TEXT_SECONDARY, wrap=True, margin="md"
            ),
            {"type": "separator", "margin": "xl"},
            _box(
                "horizontal",
                [
                    _text("📚", size="md", flex=0),
                    _box(
                        "vertical",
                        [
                            _text(copy("course_label"), size="xs", color=TEXT_MUTED),
                            _text(
                                course_title,
                                size="sm",
                                color=TEXT_PRIMARY,
                                weight="bold",
                                wrap=True,
                            ),
                        ],
                        margin="md",
                    ),
                ],
                margin="xl",
            ),
        ],
        paddingAll="20px",
    )

    return {
        "type": "flex",
        "altText": _alt_text(copy("alt_text")),
        "contents": _bubble(header, body, copy("button_label"), uri, color),
    }


def build_checkpoint_message(
    course_title: str,
    course_id: str,
    week_number: int,
    liff_id: str | None = None,
) -> dict:
    """Pick the completion message for week 0, the follow-up message otherwise."""
    if week_number == 0:
        return build_course_completion_message(course_title, course_id, liff_id)
    return build_weekly_follow_up_message(course_title, course_id, week_number, liff_id)
