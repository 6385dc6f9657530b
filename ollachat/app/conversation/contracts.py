from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterator


class Role(str, Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Turn:
    role: Role
    content: str

    def as_message(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}


@dataclass
class Transcript:
    """Ordered, append-only history of one chat session."""

    _turns: list[Turn] = field(default_factory=list)

    def append(self, turn: Turn) -> Turn:
        self._turns.append(turn)
        return turn

    @property
    def turns(self) -> tuple[Turn, ...]:
        return tuple(self._turns)

    def snapshot(self) -> "Transcript":
        return Transcript(list(self._turns))

    def as_messages(self) -> list[dict[str, str]]:
        return [turn.as_message() for turn in self._turns]

    def __iter__(self) -> Iterator[Turn]:
        return iter(tuple(self._turns))

    def __len__(self) -> int:
        return len(self._turns)
