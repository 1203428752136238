"""Closed variant sets for XML choice groups.

A choice with ``maxOccurs=1`` becomes a :class:`Choice` built through a
:class:`ChoiceBuilder`, which refuses more than one alternative at ``build()``
time. A choice with ``maxOccurs=unbounded`` becomes a :class:`ChoiceSequence`,
an append-only list of tagged entries kept in document order.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Iterable, Iterator, List, Optional, Sequence, Tuple, TypeVar

from ..utils.errors import (
    MissingRequiredChoiceError,
    MultipleChoiceAlternativesError,
    UnknownAlternativeError,
)

T = TypeVar("T")


@dataclass(frozen=True)
class Choice(Generic[T]):
    group: str
    tag: str
    value: T

    def active_variant(self) -> str:
        return self.tag

    def is_(self, tag: str) -> bool:
        return self.tag == tag


@dataclass(frozen=True)
class Identified(Generic[T]):
    """An ``Id`` attribute attached to a record by composition."""

    id: str
    inner: T


def _check_tag(group: str, alternatives: Tuple[str, ...], tag: str) -> None:
    if tag not in alternatives:
        raise UnknownAlternativeError(
            f"{tag!r} is not an alternative of choice {group} (expected one of: {', '.join(alternatives)})"
        )


class ChoiceBuilder(Generic[T]):
    def __init__(self, group: str, alternatives: Sequence[str], *, required: bool = True) -> None:
        self.group = group
        self.alternatives = tuple(alternatives)
        self.required = required
        self._set: List[Tuple[str, T]] = []

    def set(self, tag: str, value: T) -> "ChoiceBuilder[T]":
        _check_tag(self.group, self.alternatives, tag)
        self._set.append((tag, value))
        return self

    def is_empty(self) -> bool:
        return not self._set

    def build(self) -> Optional[Choice[T]]:
        if len(self._set) > 1:
            raise MultipleChoiceAlternativesError(self.group, [tag for tag, _ in self._set])
        if not self._set:
            if self.required:
                raise MissingRequiredChoiceError(self.group)
            return None
        tag, value = self._set[0]
        return Choice(self.group, tag, value)

    def build_required(self) -> Choice[T]:
        """Like :meth:`build`, but an empty group is an error even when optional."""
        choice = self.build()
        if choice is None:
            raise MissingRequiredChoiceError(self.group)
        return choice


class ChoiceSequence(Generic[T]):
    def __init__(self, group: str, alternatives: Sequence[str], entries: Iterable[Tuple[str, T]] = ()) -> None:
        self.group = group
        self.alternatives = tuple(alternatives)
        self._entries: List[Choice[T]] = []
        for tag, value in entries:
            self.append(tag, value)

    def append(self, tag: str, value: T) -> Choice[T]:
        _check_tag(self.group, self.alternatives, tag)
        entry = Choice(self.group, tag, value)
        self._entries.append(entry)
        return entry

    def of(self, tag: str) -> List[T]:
        _check_tag(self.group, self.alternatives, tag)
        return [e.value for e in self._entries if e.tag == tag]

    def tags(self) -> List[str]:
        return [e.tag for e in self._entries]

    def __iter__(self) -> Iterator[Choice[T]]:
        return iter(tuple(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __getitem__(self, index: int) -> Choice[T]:
        return self._entries[index]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, ChoiceSequence):
            return NotImplemented
        return self.group == other.group and self._entries == other._entries

    def __repr__(self) -> str:
        return f"ChoiceSequence({self.group!r}, {self.tags()!r})"
