"""Conversation data models."""
import uuid
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import List, Optional

from .content import BlockKind, ContentBlock


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


def generate_id() -> str:
    """Opaque identifier for turns and conversations."""
    return uuid.uuid4().hex[:13]


@dataclass
class Turn:
    """Represents a single role-tagged turn in a conversation."""
    turn_id: str
    role: Role
    blocks: List[ContentBlock] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)

    def snapshot(self) -> "Turn":
        """Copy of the turn with its own block list."""
        return replace(self, blocks=list(self.blocks))

    def blocks_of(self, kind: BlockKind) -> List[ContentBlock]:
        return [block for block in self.blocks if block.kind == kind]

    def text(self) -> Optional[str]:
        """Content of the first text block, if any."""
        for block in self.blocks_of(BlockKind.TEXT):
            if isinstance(block.content, str):
                return block.content
        return None


@dataclass
class Conversation:
    """Represents a multi-turn conversation."""
    conversation_id: str
    turns: List[Turn] = field(default_factory=list)
    created_at: datetime = field(default_factory=datetime.now)
