from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from typing import Callable, Iterable

from clickerengine._types import compare
from clickerengine.state import GameState

_STATE_FIELDS = frozenset(f.name for f in fields(GameState))


class Requirement(ABC):
    """Predicate over a game state. Combine with ``&`` and ``|``."""

    @abstractmethod
    def evaluate(self, state: GameState) -> bool: ...

    def __and__(self, other: Requirement) -> Requirement:
        return _Combined((self, other), all)

    def __or__(self, other: Requirement) -> Requirement:
        return _Combined((self, other), any)


def _check_field(field_name: str) -> None:
    if field_name not in _STATE_FIELDS:
        raise ValueError(f"Unknown GameState field: {field_name!r}")


# ── Private implementations ──────────────────────────────────────────


@dataclass(frozen=True)
class _FieldCompare(Requirement):
    field_name: str
    op: str
    threshold: int

    def evaluate(self, state: GameState) -> bool:
        return compare(getattr(state, self.field_name), self.op, self.threshold)


@dataclass(frozen=True)
class _Flag(Requirement):
    field_name: str

    def evaluate(self, state: GameState) -> bool:
        return bool(getattr(state, self.field_name))


@dataclass(frozen=True)
class _Combined(Requirement):
    parts: tuple[Requirement, ...]
    reduce: Callable[[Iterable[bool]], bool]

    def evaluate(self, state: GameState) -> bool:
        return self.reduce(part.evaluate(state) for part in self.parts)


@dataclass(frozen=True)
class _Predicate(Requirement):
    fn: Callable[[GameState], bool]

    def evaluate(self, state: GameState) -> bool:
        return self.fn(state)


# ── Public factory ───────────────────────────────────────────────────


class Req:
    """Builders for achievement triggers.

    Field names are checked against ``GameState`` when the requirement is
    built, so a typo in a catalog fails at import time.
    """

    @staticmethod
    def field(field_name: str, op: str, threshold: int) -> Requirement:
        _check_field(field_name)
        compare(0, op, 0)  # rejects unknown operators
        return _FieldCompare(field_name, op, threshold)

    @staticmethod
    def at_least(field_name: str, threshold: int) -> Requirement:
        return Req.field(field_name, ">=", threshold)

    @staticmethod
    def flag(field_name: str) -> Requirement:
        _check_field(field_name)
        return _Flag(field_name)

    @staticmethod
    def all(*reqs: Requirement) -> Requirement:
        return _Combined(reqs, all)

    @staticmethod
    def any(*reqs: Requirement) -> Requirement:
        return _Combined(reqs, any)

    @staticmethod
    def custom(fn: Callable[[GameState], bool]) -> Requirement:
        return _Predicate(fn)
