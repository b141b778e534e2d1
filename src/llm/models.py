"""Chat message models shared by LLM adapters."""

from dataclasses import dataclass
from enum import Enum


class MessageRole(Enum):
    """LLM message roles."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A message in an LLM conversation."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        """Serialize message to dictionary for API calls."""
        return {
            "role": self.role.value,
            "content": self.content,
        }
