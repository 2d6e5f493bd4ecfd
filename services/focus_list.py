"""Ordered, de-duplicated focus tags for one session."""

from __future__ import annotations

from typing import Iterable, Iterator, List

SUGGESTED_FOCUSES = ("dance", "outfit", "comedy", "tutorial", "unboxing", "product review")


class FocusList:
    """Insertion-ordered set of trimmed labels."""

    def __init__(self, labels: Iterable[str] = ()) -> None:
        self._labels: List[str] = []
        for label in labels:
            self.add(label)

    def add(self, label: str) -> bool:
        """Add `label` unless it is blank or already present. Returns True if added."""
        cleaned = (label or "").strip()
        if not cleaned or cleaned in self._labels:
            return False
        self._labels.append(cleaned)
        return True

    def remove(self, label: str) -> bool:
        if label not in self._labels:
            return False
        self._labels.remove(label)
        return True

    def clear(self) -> None:
        self._labels.clear()

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._labels))

    def __len__(self) -> int:
        return len(self._labels)

    def __contains__(self, label: object) -> bool:
        return label in self._labels
