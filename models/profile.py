from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional


@dataclass
class Profile:
    """A recurring person the describer can name in its output.

    Attributes:
        id: Unique identifier inside the profile store (None until stored).
        name: Display name used in the prompt.
        description: Visual description used to recognise the person.
        pronouns: Optional pronouns, omitted from the prompt when blank.
    """

    id: Optional[str]
    name: str
    description: str
    pronouns: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Profile":
        """Build a Profile from a persisted record, raising on missing fields."""
        return cls(
            id=str(data["id"]),
            name=str(data["name"]),
            description=str(data["description"]),
            pronouns=data.get("pronouns") or None,
        )
