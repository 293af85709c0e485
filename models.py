# models.py
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

FREQUENCIES = ("daily", "weekly", "custom")


def new_habit_id() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def dedupe_dates(dates: Iterable[str]) -> List[str]:
    """Drop repeated dates, keeping first-seen order."""
    if isinstance(dates, (str, bytes)):
        raise TypeError("completions must be a list of date strings, not a single string")
    out = list(dict.fromkeys(dates))
    for value in out:
        if not isinstance(value, str):
            raise TypeError(f"completion dates must be strings, got {type(value).__name__}")
    return out


def validate_frequency(value: str) -> str:
    if value not in FREQUENCIES:
        raise ValueError(f"frequency must be one of {', '.join(FREQUENCIES)}, got {value!r}")
    return value


@dataclass
class Habit:
    id: str
    name: str
    frequency: str = "daily"
    completions: List[str] = field(default_factory=list)  # YYYY-MM-DD
    created_at: str = ""
    description: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"id": self.id, "name": self.name}
        if self.description is not None:
            out["description"] = self.description
        out["frequency"] = self.frequency
        out["completions"] = list(self.completions)
        out["createdAt"] = self.created_at
        return out

    @classmethod
    def from_dict(cls, raw: Dict[str, Any]) -> "Habit":
        if not isinstance(raw, dict):
            raise TypeError(f"habit record must be an object, got {type(raw).__name__}")
        completions = raw.get("completions", [])
        if not isinstance(completions, list):
            raise TypeError("completions must be a list")
        habit_id = raw["id"]
        if not isinstance(habit_id, str) or not habit_id:
            raise TypeError("id must be a non-empty string")
        created_at = raw["createdAt"]
        if not isinstance(created_at, str):
            raise TypeError("createdAt must be a string")
        return cls(
            id=habit_id,
            name=raw["name"],
            frequency=raw["frequency"],
            completions=dedupe_dates(completions),
            created_at=created_at,
            description=raw.get("description"),
        )

    def copy(self) -> "Habit":
        return Habit(
            id=self.id,
            name=self.name,
            frequency=self.frequency,
            completions=list(self.completions),
            created_at=self.created_at,
            description=self.description,
        )
