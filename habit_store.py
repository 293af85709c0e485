# habit_store.py
"""JSON-file backed store for habits.

Every mutation is applied to the in-memory mapping first and then the whole
collection is written out (temp sibling file, then rename). If that write
fails the in-memory change stays applied, so memory and disk disagree until
the next successful save or a reload.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Union

from config import get_settings
from models import Habit, dedupe_dates, new_habit_id, now_iso, validate_frequency

logger = logging.getLogger(__name__)

TMP_SUFFIX = ".tmp"
IMMUTABLE_FIELDS = ("id", "created_at")


class HabitStoreError(Exception):
    """Base error for the habit store."""


class HabitNotFoundError(HabitStoreError, KeyError):
    def __init__(self, habit_id: str):
        super().__init__(habit_id)
        self.habit_id = habit_id

    def __str__(self) -> str:
        return f"Habit not found: {self.habit_id}"


class CorruptStoreError(HabitStoreError, ValueError):
    def __init__(self, path: Path, reason: str):
        super().__init__(f"Corrupt data file at {path}: {reason}")
        self.path = path
        self.reason = reason


class HabitStore:
    def __init__(self, path: Union[str, Path]):
        self.path = Path(path)
        self.tmp_path = self.path.with_name(self.path.name + TMP_SUFFIX)
        self._habits: Dict[str, Habit] = {}

    @classmethod
    async def create(cls, path: Union[str, Path, None] = None) -> "HabitStore":
        """Build a store for ``path`` and load it before handing it out."""
        store = cls(path if path is not None else get_settings().data_file)
        await store.load()
        return store

    def __len__(self) -> int:
        return len(self._habits)

    def __contains__(self, habit_id: object) -> bool:
        return habit_id in self._habits

    async def _run(self, func, *args):
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, func, *args)

    # -------- Load / Save --------
    def _read(self) -> Optional[bytes]:
        try:
            with open(self.path, "rb") as f:
                return f.read()
        except FileNotFoundError:
            return None

    def _parse(self, raw: bytes) -> Dict[str, Habit]:
        try:
            text = raw.decode("utf-8")
        except UnicodeDecodeError as exc:
            raise CorruptStoreError(self.path, "invalid UTF-8") from exc
        try:
            data = json.loads(text)
        except json.JSONDecodeError as exc:
            raise CorruptStoreError(self.path, "invalid JSON") from exc

        if not isinstance(data, dict) or not isinstance(data.get("habits"), list):
            raise CorruptStoreError(self.path, '"habits" must be an array')

        habits: Dict[str, Habit] = {}
        for index, item in enumerate(data["habits"]):
            try:
                habit = Habit.from_dict(item)
            except (KeyError, TypeError, ValueError) as exc:
                raise CorruptStoreError(self.path, f"invalid habit at index {index}") from exc
            # later duplicates win
            habits[habit.id] = habit
        return habits

    async def load(self) -> None:
        raw = await self._run(self._read)
        if raw is None:
            logger.info("No data file at %s, starting with an empty store", self.path)
            self._habits = {}
            return
        try:
            self._habits = self._parse(raw)
        except CorruptStoreError as exc:
            logger.error("%s", exc)
            raise
        logger.info("Loaded %d habits from %s", len(self._habits), self.path)

    def _write(self, payload: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        try:
            with open(self.tmp_path, "w", encoding="utf-8") as f:
                f.write(payload)
                f.flush()
                os.fsync(f.fileno())
            os.replace(self.tmp_path, self.path)
        except OSError:
            try:
                os.unlink(self.tmp_path)
            except FileNotFoundError:
                pass
            raise

    async def save(self) -> None:
        data = {"habits": [h.to_dict() for h in self._habits.values()]}
        payload = json.dumps(data, ensure_ascii=False, indent=2)
        await self._run(self._write, payload)
        logger.debug("Saved %d habits to %s", len(self._habits), self.path)

    # -------- Habits --------
    async def add_habit(
        self,
        name: str,
        frequency: str,
        description: Optional[str] = None,
        habit_id: Optional[str] = None,
        completions: Optional[Iterable[str]] = None,
        created_at: Optional[str] = None,
    ) -> Habit:
        habit = Habit(
            id=habit_id if habit_id is not None else new_habit_id(),
            name=name,
            frequency=validate_frequency(frequency),
            completions=dedupe_dates(completions) if completions is not None else [],
            created_at=created_at if created_at is not None else now_iso(),
            description=description,
        )
        self._habits[habit.id] = habit
        await self.save()
        logger.info("Added habit %s (%s)", habit.id, habit.name)
        return habit.copy()

    async def get_habit(self, habit_id: str) -> Optional[Habit]:
        habit = self._habits.get(habit_id)
        return habit.copy() if habit is not None else None

    async def get_all_habits(self) -> List[Habit]:
        return [h.copy() for h in self._habits.values()]

    async def update_habit(self, habit_id: str, **changes: Any) -> Habit:
        existing = self._habits.get(habit_id)
        if existing is None:
            raise HabitNotFoundError(habit_id)

        fields = existing.to_dict()
        fields["created_at"] = fields.pop("createdAt")
        fields.setdefault("description", None)
        unknown = set(changes) - set(fields)
        if unknown:
            raise TypeError(f"Unknown habit fields: {', '.join(sorted(unknown))}")
        if "frequency" in changes:
            validate_frequency(changes["frequency"])
        if "completions" in changes:
            changes["completions"] = dedupe_dates(changes["completions"])

        fields.update(changes)
        for name in IMMUTABLE_FIELDS:
            fields[name] = getattr(existing, name)

        updated = Habit(**fields)
        self._habits[habit_id] = updated
        await self.save()
        logger.info("Updated habit %s", habit_id)
        return updated.copy()

    async def delete_habit(self, habit_id: str) -> bool:
        if habit_id not in self._habits:
            return False
        del self._habits[habit_id]
        await self.save()
        logger.info("Deleted habit %s", habit_id)
        return True

    # -------- Completions --------
    async def log_completion(self, habit_id: str, day: str) -> None:
        if not isinstance(day, str):
            raise TypeError(f"completion date must be a string, got {type(day).__name__}")
        habit = self._habits.get(habit_id)
        if habit is None:
            raise HabitNotFoundError(habit_id)
        if day in habit.completions:
            return
        habit.completions.append(day)
        await self.save()
