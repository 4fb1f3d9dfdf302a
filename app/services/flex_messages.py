"""
LINE Flex Message builders for coaching cards.

Every card is a single bubble: icon + title header, an optional status line,
a separator, the message body and one call-to-action button back into the app.
"""

from typing import Optional

from app.config import settings
from app.services.notification_types import DISPLAY, NotificationType

BRAND_COLOR = "#1DB446"
WEIGHT_COLOR = "#2196F3"
MUTED_COLOR = "#888888"
BODY_COLOR = "#333333"


def create_flex_message(alt_text: str, contents: dict) -> dict:
    return {"type": "flex", "altText": alt_text, "contents": contents}


def ai_coach_status_text(context) -> str:
    """Status line text, empty when there is nothing to show."""
    if context.ai_coach.is_unlimited:
        return "∞ Unlimited"
    if context.ai_coach.days_remaining:
        return f"{context.ai_coach.days_remaining} days left"
    return ""


def _header(icon: str, title: str, color: str = BRAND_COLOR) -> dict:
    return {
        "type": "box",
        "layout": "horizontal",
        "contents": [
            {"type": "text", "text": icon, "size": "xl", "flex": 0},
            {
                "type": "text",
                "text": title,
                "weight": "bold",
                "size": "lg",
                "color": color,
                "margin": "md",
            },
        ],
    }


def _caption(text: str) -> dict:
    return {"type": "text", "text": text, "size": "sm", "color": MUTED_COLOR, "margin": "md"}


def _body_text(text: str, size: str = "md") -> dict:
    return {
        "type": "text",
        "text": text,
        "wrap": True,
        "size": size,
        "margin": "lg",
        "color": BODY_COLOR,
    }


def _uri_button(label: str, uri: str, color: str = BRAND_COLOR) -> dict:
    return {
        "type": "button",
        "style": "primary",
        "color": color,
        "action": {"type": "uri", "label": label, "uri": uri},
    }


def _bubble(body_contents: list, buttons: list, footer_layout: str = "horizontal") -> dict:
    return {
        "type": "bubble",
        "size": "mega",
        "body": {
            "type": "box",
            "layout": "vertical",
            "contents": body_contents,
            "paddingAll": "20px",
        },
        "footer": {
            "type": "box",
            "layout": footer_layout,
            "spacing": "sm",
            "contents": buttons,
        },
    }


def build_coaching_flex(
    notification_type: NotificationType, message: str, context
) -> dict:
    """Standard coaching card for any notification type."""
    icon, title = DISPLAY[notification_type]

    contents = [_header(icon, title)]
    status = ai_coach_status_text(context)
    if status:
        contents.append(
            {
                "type": "box",
                "layout": "vertical",
                "margin": "md",
                "contents": [
                    {
                        "type": "text",
                        "text": f"AI Coach: {status}",
                        "size": "sm",
                        "color": MUTED_COLOR,
                    }
                ],
            }
        )
    contents.append({"type": "separator", "margin": "lg"})
    contents.append(_body_text(message))

    return create_flex_message(
        f"{icon} {title}",
        _bubble(contents, [_uri_button("Open app", settings.liff_url)]),
    )


def build_weekly_insights_flex(message: str, context, week_number: int) -> dict:
    icon, _ = DISPLAY[NotificationType.WEEKLY]
    title = f"Week {week_number} insights"
    status = ai_coach_status_text(context)

    contents = [
        _header(icon, title),
        _caption(f"AI Coach: {status}" if status else "AI Coach"),
        {"type": "separator", "margin": "lg"},
        _body_text(message, size="sm"),
    ]
    return create_flex_message(
        f"{icon} {title}",
        _bubble(contents, [_uri_button("See details", settings.liff_url)]),
    )


def build_progress_photo_flex(message: str, week_number: int) -> dict:
    icon, title = DISPLAY[NotificationType.PHOTO]
    tips = "💡 Tips:\n• Stand straight, front and side\n• Good lighting\n• Same outfit every time"

    contents = [
        _header(icon, f"{title} time!"),
        _caption(f"Week {week_number}"),
        {"type": "separator", "margin": "lg"},
        _body_text(f"{message}\n\n{tips}", size="sm"),
    ]
    buttons = [
        _uri_button("📷 Take photo", f"{settings.liff_url}/progress-photo"),
        {
            "type": "button",
            "style": "secondary",
            "action": {
                "type": "message",
                "label": "Skip this week",
                "text": "Skip progress photo this week",
            },
        },
    ]
    return create_flex_message(f"{icon} {title}", _bubble(contents, buttons))


def _weight_info(context) -> Optional[str]:
    lines = []
    if context.goal.current_weight:
        lines.append(f"Latest weight: {context.goal.current_weight} kg")
    if context.goal.target_weight:
        lines.append(f"Target: {context.goal.target_weight} kg")
    if context.weight_change is not None:
        sign = "+" if context.weight_change > 0 else ""
        lines.append(f"Change: {sign}{context.weight_change:.1f} kg")
    return "\n".join(lines) or None


def build_weight_reminder_flex(context, week_number: int) -> dict:
    """Weekly weigh-in reminder with the member's weight summary."""
    contents = [
        _header("⚖️", "Time to weigh in!", color=WEIGHT_COLOR),
        _caption(f"Week {week_number}"),
        {"type": "separator", "margin": "lg"},
        _body_text(
            f"Good morning, {context.name}!\n\n"
            "Don't forget to weigh yourself today so we can track your progress.",
            size="sm",
        ),
    ]
    weight_info = _weight_info(context)
    if weight_info:
        contents.append(
            {
                "type": "box",
                "layout": "vertical",
                "margin": "lg",
                "paddingAll": "12px",
                "backgroundColor": "#E3F2FD",
                "cornerRadius": "8px",
                "contents": [
                    {
                        "type": "text",
                        "text": weight_info,
                        "size": "sm",
                        "color": "#1565C0",
                        "wrap": True,
                    }
                ],
            }
        )
    contents.append(
        {
            "type": "text",
            "text": "💡 Tips:\n• Weigh right after waking up\n• Before eating or drinking\n• Light clothing",
            "wrap": True,
            "size": "xs",
            "margin": "lg",
            "color": "#666666",
        }
    )
    return create_flex_message(
        "⚖️ Weigh-in reminder",
        _bubble(
            contents,
            [_uri_button("⚖️ Log weight", settings.liff_weight_url, color=WEIGHT_COLOR)],
            footer_layout="vertical",
        ),
    )
