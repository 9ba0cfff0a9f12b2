from __future__ import annotations

import asyncio
import json
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from pathlib import Path
from typing import Any, AsyncIterator, Callable

import structlog

from clickerengine.state import GameState

log = structlog.get_logger()

SAVE_FORMAT_VERSION = 1


class StoreError(Exception):
    """The underlying persistence failed. Nothing was committed."""


@dataclass(frozen=True)
class AchievementRecord:
    id: str
    unlocked_at_ms: int


class StateStore(ABC):
    """Owner of the single game-state row and the achievement set.

    ``run_exclusive`` is the only way to write state derived from a read:
    the transform runs inside the store's critical section, so no caller can
    write back a value computed from a stale snapshot.
    """

    @abstractmethod
    async def get(self) -> GameState | None: ...

    @abstractmethod
    async def put(self, state: GameState) -> None: ...

    @abstractmethod
    async def run_exclusive(self, fn: Callable[[GameState], GameState]) -> GameState: ...

    @abstractmethod
    def observe(self) -> AsyncIterator[GameState]: ...

    @abstractmethod
    async def insert_achievement_if_absent(self, id: str, unlocked_at_ms: int) -> bool: ...

    @abstractmethod
    async def achievements(self) -> dict[str, AchievementRecord]: ...

    @abstractmethod
    def observe_achievements(self) -> AsyncIterator[frozenset[str]]: ...

    @abstractmethod
    async def reset(self) -> None:
        """Drop the state row and every achievement."""

    async def achievement_ids(self) -> frozenset[str]:
        return frozenset(await self.achievements())


class MemoryStateStore(StateStore):
    """In-process store: one asyncio writer at a time, lock-free readers.

    Subclasses make it durable by overriding the ``_persist*`` hooks, which
    run while the write lock is held and before the new snapshot becomes
    visible. If a hook raises, readers keep seeing the previous snapshot.
    """

    def __init__(
        self,
        state: GameState | None = None,
        achievements: dict[str, AchievementRecord] | None = None,
    ) -> None:
        self._state = state
        self._achievements: dict[str, AchievementRecord] = dict(achievements or {})
        self._lock = asyncio.Lock()
        self._achievement_lock = asyncio.Lock()
        self._state_subscribers: list[asyncio.Queue[GameState]] = []
        self._achievement_subscribers: list[asyncio.Queue[frozenset[str]]] = []

    # ── Game state ───────────────────────────────────────────────────

    async def get(self) -> GameState | None:
        return self._state

    async def put(self, state: GameState) -> None:
        async with self._lock:
            await self._commit(state)

    async def run_exclusive(self, fn: Callable[[GameState], GameState]) -> GameState:
        async with self._lock:
            missing = self._state is None
            current = GameState() if self._state is None else self._state
            updated = fn(current)
            if updated is current and not missing:
                return current
            # A new row is committed together with the first transform
            await self._commit(updated)
            return updated

    async def observe(self) -> AsyncIterator[GameState]:
        queue: asyncio.Queue[GameState] = asyncio.Queue()
        self._state_subscribers.append(queue)
        try:
            if self._state is not None:
                yield self._state
            while True:
                yield await queue.get()
        finally:
            self._state_subscribers.remove(queue)

    async def _commit(self, state: GameState) -> None:
        await self._persist(state)
        self._state = state
        for queue in self._state_subscribers:
            queue.put_nowait(state)

    # ── Achievements ─────────────────────────────────────────────────

    async def insert_achievement_if_absent(self, id: str, unlocked_at_ms: int) -> bool:
        async with self._achievement_lock:
            if id in self._achievements:
                return False
            record = AchievementRecord(id=id, unlocked_at_ms=unlocked_at_ms)
            updated = {**self._achievements, id: record}
            await self._persist_achievements(updated)
            self._achievements = updated
            ids = frozenset(updated)
            for queue in self._achievement_subscribers:
                queue.put_nowait(ids)
        log.info("achievement.unlocked", achievement_id=id, unlocked_at_ms=unlocked_at_ms)
        return True

    async def achievements(self) -> dict[str, AchievementRecord]:
        return dict(self._achievements)

    async def observe_achievements(self) -> AsyncIterator[frozenset[str]]:
        queue: asyncio.Queue[frozenset[str]] = asyncio.Queue()
        self._achievement_subscribers.append(queue)
        try:
            yield frozenset(self._achievements)
            while True:
                yield await queue.get()
        finally:
            self._achievement_subscribers.remove(queue)

    async def reset(self) -> None:
        async with self._lock, self._achievement_lock:
            await self._persist_reset()
            self._state = None
            self._achievements = {}
            for queue in self._achievement_subscribers:
                queue.put_nowait(frozenset())
        log.info("store.reset")

    # ── Persistence hooks ────────────────────────────────────────────

    async def _persist(self, state: GameState) -> None:
        return None

    async def _persist_achievements(self, achievements: dict[str, AchievementRecord]) -> None:
        return None

    async def _persist_reset(self) -> None:
        return None


class JsonFileStateStore(MemoryStateStore):
    """Durable store backed by one JSON document.

    Every commit rewrites the whole document through a temporary file and
    an atomic rename, off the event loop.
    """

    def __init__(
        self,
        path: Path,
        state: GameState | None = None,
        achievements: dict[str, AchievementRecord] | None = None,
    ) -> None:
        super().__init__(state, achievements)
        self._path = path
        # State and achievement commits share one file
        self._io_lock = asyncio.Lock()

    @property
    def path(self) -> Path:
        return self._path

    @classmethod
    def open(cls, path: str | Path) -> JsonFileStateStore:
        """Load *path* if it exists, otherwise start empty."""
        path = Path(path)
        if not path.exists():
            return cls(path)
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("top level is not an object")
            state_data = data.get("state")
            if state_data is not None and not isinstance(state_data, dict):
                raise ValueError("'state' is not an object")
            records = data.get("achievements", [])
            if not isinstance(records, list):
                raise ValueError("'achievements' is not a list")
            state = GameState.from_dict(state_data) if state_data is not None else None
            achievements = {
                a["id"]: AchievementRecord(id=a["id"], unlocked_at_ms=a["unlocked_at_ms"])
                for a in records
            }
        except (OSError, ValueError, KeyError, TypeError) as exc:
            raise StoreError(f"Cannot load save file {path}: {exc}") from exc
        log.debug("store.loaded", path=str(path), has_state=state is not None)
        return cls(path, state, achievements)

    async def _persist(self, state: GameState) -> None:
        await self._write(lambda: self._document(state, self._achievements))

    async def _persist_achievements(self, achievements: dict[str, AchievementRecord]) -> None:
        await self._write(lambda: self._document(self._state, achievements))

    async def _persist_reset(self) -> None:
        await self._write(lambda: self._document(None, {}))

    @staticmethod
    def _document(
        state: GameState | None, achievements: dict[str, AchievementRecord]
    ) -> dict[str, Any]:
        return {
            "version": SAVE_FORMAT_VERSION,
            "state": state.to_dict() if state is not None else None,
            "achievements": [
                {"id": r.id, "unlocked_at_ms": r.unlocked_at_ms}
                for r in sorted(achievements.values(), key=lambda r: r.unlocked_at_ms)
            ],
        }

    async def _write(self, build: Callable[[], dict[str, Any]]) -> None:
        try:
            async with self._io_lock:
                # Built under the lock so it carries the latest committed other half
                payload = build()
                await asyncio.to_thread(_write_json_atomic, self._path, payload)
        except OSError as exc:
            log.error("store.write_failed", path=str(self._path), error=str(exc))
            raise StoreError(f"Cannot write save file {self._path}: {exc}") from exc


def _write_json_atomic(path: Path, payload: Any) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2, sort_keys=True) + "\n", encoding="utf-8")
    os.replace(tmp, path)
