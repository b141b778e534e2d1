"""Data models for the digest module."""

from dataclasses import dataclass, field
from typing import Any

from src.slack.models import Update


@dataclass
class DigestSection:
    """A group of rendered message lines under one heading.

    Attributes:
        heading: Section title (e.g., "High Priority").
        updates: Updates in render order.
        lines: Rendered prompt lines, parallel to ``updates``.
    """

    heading: str
    updates: list[Update] = field(default_factory=list)
    lines: list[str] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of messages in this section."""
        return len(self.updates)


@dataclass
class PromptBundle:
    """A system/user prompt pair ready for the language model.

    Attributes:
        system_message: Role text for the system message.
        user_prompt: Fully rendered user prompt.
        included_message_count: Messages rendered into the prompt.
        truncated: Whether messages were dropped to respect the budget.
        focus: Template that was actually used.
        total_message_count: Messages offered to the assembler.
        token_estimate: Word count of the rendered message block.
        sections: Non-empty sections in render order.
    """

    system_message: str
    user_prompt: str
    included_message_count: int
    truncated: bool = False
    focus: str = "default"
    total_message_count: int = 0
    token_estimate: int = 0
    sections: list[DigestSection] = field(default_factory=list)

    @property
    def is_renderable(self) -> bool:
        """False for the explicit "nothing renderable" bundle."""
        return self.included_message_count > 0

    def to_dict(self) -> dict[str, Any]:
        """Serialize to dictionary (sections are summarized by heading/count)."""
        return {
            "system_message": self.system_message,
            "user_prompt": self.user_prompt,
            "included_message_count": self.included_message_count,
            "truncated": self.truncated,
            "focus": self.focus,
            "total_message_count": self.total_message_count,
            "token_estimate": self.token_estimate,
            "sections": {s.heading: s.count for s in self.sections},
        }
