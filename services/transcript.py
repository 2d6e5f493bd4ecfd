"""Ordered log of turns exchanged with the generation model."""

from __future__ import annotations

from typing import Any, Dict, Iterator, List, Optional

from models.session_models import Turn, TurnRole


class Transcript:
    """Append-only turn log with a single corrective rollback."""

    def __init__(self) -> None:
        self._turns: List[Turn] = []

    def append(self, role: TurnRole, text: str) -> Turn:
        turn = Turn(role=TurnRole(role), text=text)
        self._turns.append(turn)
        return turn

    def rollback(self, turn: Turn) -> None:
        """Remove `turn` if it is the last one; used when a refinement was never answered."""
        if self._turns and self._turns[-1] is turn:
            self._turns.pop()

    def clear(self) -> None:
        self._turns.clear()

    def latest_model_text(self) -> Optional[str]:
        for turn in reversed(self._turns):
            if turn.role == TurnRole.MODEL:
                return turn.text
        return None

    def replay(self) -> List[Dict[str, Any]]:
        """Return the turns in display order as plain dicts."""
        return [{"role": t.role.value, "text": t.text} for t in self._turns]

    def __iter__(self) -> Iterator[Turn]:
        return iter(list(self._turns))

    def __len__(self) -> int:
        return len(self._turns)
