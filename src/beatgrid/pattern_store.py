"""
Named pattern persistence on top of a string key-value store.

All saved patterns live as one JSON array under a single key. Reads fail open:
anything that does not parse is treated as an empty list.
"""

from __future__ import annotations
import json
import logging
import os
import tempfile
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

from .constants import DEFAULT_KIT, DEFAULT_TEMPO, STORAGE_KEY

logger = logging.getLogger(__name__)


class KeyValueStore(Protocol):
    def get(self, key: str) -> Optional[str]: ...
    def set(self, key: str, value: str) -> None: ...


class MemoryStore:
    """In-process store; contents vanish with the process."""
    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value


class JsonFileStore:
    """
    Keys and string values kept in one JSON object file.
    Writes go to a temp file in the same directory, then replace the original.
    """
    def __init__(self, path: Path | str):
        self.path = Path(path).expanduser()

    def _read_all(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, "r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:  # ValueError covers bad JSON and bad UTF-8
            logger.warning("Ignoring unreadable store %s: %s", self.path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring store %s: top level is not an object", self.path)
            return {}
        return {str(k): v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read_all().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._read_all()
        data[key] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".tmp_", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2)
            os.replace(tmp, self.path)
        except OSError:
            try:
                os.unlink(tmp)
            except OSError:
                pass
            raise


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


@dataclass(frozen=True)
class SavedPattern:
    name: str
    pattern: Dict[str, List[bool]]
    tempo: int = DEFAULT_TEMPO
    kit: str = DEFAULT_KIT
    created_at: str = field(default_factory=_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "pattern": self.pattern,
            "tempo": self.tempo,
            "kit": self.kit,
            "timestamp": self.created_at,
        }

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SavedPattern":
        """Missing tempo/kit fall back to defaults; a missing name or grid is an error."""
        name = d.get("name")
        pattern = d.get("pattern")
        if not isinstance(name, str) or not name:
            raise ValueError("saved pattern has no name")
        if not isinstance(pattern, dict):
            raise ValueError(f"saved pattern {name!r} has no grid")
        return cls(
            name=name,
            pattern={str(k): [bool(x) for x in v] for k, v in pattern.items() if isinstance(v, list)},
            tempo=int(d.get("tempo") or DEFAULT_TEMPO),
            kit=str(d.get("kit") or DEFAULT_KIT),
            created_at=str(d.get("timestamp") or ""),
        )


class PatternStore:
    def __init__(self, store: KeyValueStore, key: str = STORAGE_KEY):
        self.store = store
        self.key = key

    def _read(self) -> List[SavedPattern]:
        raw = self.store.get(self.key)
        if not raw:
            return []
        try:
            items = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning("Saved patterns are not valid JSON, treating as empty: %s", e)
            return []
        if not isinstance(items, list):
            logger.warning("Saved patterns are not a list, treating as empty")
            return []
        out: List[SavedPattern] = []
        for item in items:
            if not isinstance(item, dict):
                continue
            try:
                out.append(SavedPattern.from_dict(item))
            except (ValueError, TypeError, OverflowError) as e:
                logger.warning("Skipping malformed saved pattern: %s", e)
        return out

    def _write(self, records: List[SavedPattern]) -> None:
        self.store.set(self.key, json.dumps([r.to_dict() for r in records]))

    def save(self, name: str, pattern: Dict[str, List[bool]], tempo: int, kit: str) -> Optional[SavedPattern]:
        """Upsert by name. A blank name saves nothing and returns None."""
        name = (name or "").strip()
        if not name:
            return None
        record = SavedPattern(name=name, pattern=pattern, tempo=int(tempo), kit=kit)
        records = self._read()
        for i, r in enumerate(records):
            if r.name == name:
                records[i] = record
                break
        else:
            records.append(record)
        self._write(records)
        logger.info("Saved pattern %r (%d BPM, %s)", name, record.tempo, kit)
        return record

    def list(self) -> List[Tuple[str, int]]:
        return [(r.name, r.tempo) for r in self._read()]

    def load(self, name: str) -> Optional[SavedPattern]:
        for r in self._read():
            if r.name == name:
                return r
        return None

    def delete(self, name: str) -> bool:
        records = self._read()
        kept = [r for r in records if r.name != name]
        if len(kept) == len(records):
            return False
        self._write(kept)
        return True
