"""Name filters used to narrow organizations, accounts and roles.

Callers may pass a plain string (substring match on the display name), a
compiled regular expression, a callable taking the record, or one of the
explicit variants below. ``as_matcher`` resolves any of these into a single
``Matcher`` at the API boundary.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Callable, Protocol, Union


class Named(Protocol):
    @property
    def name(self) -> str: ...


class Matcher(Protocol):
    def __call__(self, record: Any) -> bool: ...


@dataclass(frozen=True)
class Exact:
    value: str

    def __call__(self, record: Named) -> bool:
        return record.name == self.value


@dataclass(frozen=True)
class Substring:
    value: str

    def __call__(self, record: Named) -> bool:
        return self.value in record.name


@dataclass(frozen=True)
class Pattern:
    regex: re.Pattern[str]

    @classmethod
    def compile(cls, pattern: str, flags: int = 0) -> "Pattern":
        return cls(re.compile(pattern, flags))

    def __call__(self, record: Named) -> bool:
        return self.regex.search(record.name) is not None


@dataclass(frozen=True)
class Predicate:
    fn: Callable[[Any], bool]

    def __call__(self, record: Any) -> bool:
        return bool(self.fn(record))


@dataclass(frozen=True)
class MatchAll:
    def __call__(self, record: Any) -> bool:
        return True


MatchSpec = Union[
    None, str, "re.Pattern[str]", Callable[[Any], bool], Exact, Substring, Pattern, Predicate
]

MATCH_ALL = MatchAll()


def as_matcher(spec: MatchSpec) -> Matcher:
    """Resolve a caller-supplied filter into a matcher."""
    if spec is None:
        return MATCH_ALL
    if isinstance(spec, (Exact, Substring, Pattern, Predicate, MatchAll)):
        return spec
    if isinstance(spec, str):
        return Substring(spec)
    if isinstance(spec, re.Pattern):
        return Pattern(spec)
    if callable(spec):
        return Predicate(spec)
    raise TypeError(f"Unsupported filter type: {type(spec).__name__}")
