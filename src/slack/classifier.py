"""Keyword based message categorization."""

from .models import Category

ALERT_KEYWORDS = (
    "alert",
    "incident",
    "outage",
    "critical",
    "down",
    "p0",
    "sev0",
    "sev1",
)
HIGH_PRIORITY_KEYWORDS = ("urgent", "asap", "blocker", "immediately")
SUPPORT_KEYWORDS = (
    "support request",
    "customer issue",
    "ticket",
    "bug report",
    "need help",
    "assistance",
)
SUPPORT_CHANNEL_HINTS = ("support", "customer", "help")

LOW_PRIORITY = 1
MEDIUM_PRIORITY = 2
HIGH_PRIORITY = 3


def _contains_any(text: str, keywords: tuple[str, ...]) -> bool:
    return any(keyword in text for keyword in keywords)


def classify(channel_name: str, text: str) -> tuple[Category, int]:
    """Assign a category and priority to a message.

    Alert keywords always win over the channel-name and support-keyword
    rules. Urgency keywords can raise priority but never lower it.

    Args:
        channel_name: Display name of the source channel.
        text: Message text.

    Returns:
        Tuple of (category, priority) where priority is 1 (low) to 3 (high).
    """
    lower_text = (text or "").lower()
    lower_channel = (channel_name or "").lower()

    priority = LOW_PRIORITY
    if _contains_any(lower_text, HIGH_PRIORITY_KEYWORDS):
        priority = HIGH_PRIORITY

    if _contains_any(lower_text, ALERT_KEYWORDS):
        return Category.ALERT, max(priority, HIGH_PRIORITY)

    if _contains_any(lower_channel, SUPPORT_CHANNEL_HINTS):
        return Category.SUPPORT, max(priority, MEDIUM_PRIORITY)

    if _contains_any(lower_text, SUPPORT_KEYWORDS):
        return Category.SUPPORT, max(priority, MEDIUM_PRIORITY)

    return Category.GENERAL, priority
