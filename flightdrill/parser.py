"""Free-text drill commands -> ``Command``.

Matching is case-insensitive and ignores punctuation, so "Forward, MARCH!"
and "forward march" are the same phrase. An optional "Flight"/"Detail"
preparatory word in front is accepted and dropped.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Callable

from .commands import Command, CommandKind


@dataclass(frozen=True)
class ParseError:
    error: str


_PUNCT = re.compile(r"[^\w\s]")
_SPACES = re.compile(r"\s+")
_PREPARATORY = re.compile(r"^(?:flight|detail) (?=.)")


def normalize_phrase(text: str) -> str:
    cleaned = _SPACES.sub(" ", _PUNCT.sub(" ", text.lower())).strip()
    return _PREPARATORY.sub("", cleaned)


def _fixed(kind: CommandKind) -> Callable[[re.Match[str]], Command]:
    return lambda _m: Command(kind=kind)


def _fall_in(m: re.Match[str]) -> Command:
    elements = m.group("elements")
    return Command(kind=CommandKind.FALL_IN, elements=int(elements) if elements else None)


def _column(m: re.Match[str]) -> Command:
    half = m.group("half") is not None
    if m.group("side") == "right":
        return Command(kind=CommandKind.COLUMN_HALF_RIGHT if half else CommandKind.COLUMN_RIGHT)
    return Command(kind=CommandKind.COLUMN_HALF_LEFT if half else CommandKind.COLUMN_LEFT)


_MARCH = r"(?: march)?"

_PHRASES: list[tuple[re.Pattern[str], Callable[[re.Match[str]], Command]]] = [
    (re.compile(r"^(?:in (?P<elements>\d+) elements? )?fall ?in$"), _fall_in),
    (re.compile(r"^rotate fall ?in$"), _fixed(CommandKind.ROTATE_FALL_IN)),
    (re.compile(r"^forward march$"), _fixed(CommandKind.FORWARD_MARCH)),
    (re.compile(r"^halt$"), _fixed(CommandKind.HALT)),
    (re.compile(r"^left face$"), _fixed(CommandKind.LEFT_FACE)),
    (re.compile(r"^right face$"), _fixed(CommandKind.RIGHT_FACE)),
    (re.compile(r"^about face$"), _fixed(CommandKind.ABOUT_FACE)),
    (re.compile(rf"^left flank{_MARCH}$"), _fixed(CommandKind.LEFT_FLANK)),
    (re.compile(rf"^right flank{_MARCH}$"), _fixed(CommandKind.RIGHT_FLANK)),
    (re.compile(rf"^to the rear{_MARCH}$"), _fixed(CommandKind.TO_THE_REAR)),
    (re.compile(rf"^column (?P<half>half )?(?P<side>left|right){_MARCH}$"), _column),
    (re.compile(rf"^counter ?march{_MARCH}$"), _fixed(CommandKind.COUNTER_MARCH)),
    (re.compile(r"^guide left$"), _fixed(CommandKind.GUIDE_LEFT)),
    (re.compile(r"^guide right$"), _fixed(CommandKind.GUIDE_RIGHT)),
    (
        re.compile(r"^at close interval dress right dress$"),
        _fixed(CommandKind.AT_CLOSE_INTERVAL_DRESS_RIGHT_DRESS),
    ),
    (re.compile(r"^ready front$"), _fixed(CommandKind.READY_FRONT)),
    (re.compile(rf"^open ranks{_MARCH}$"), _fixed(CommandKind.OPEN_RANKS)),
    (re.compile(rf"^close ranks{_MARCH}$"), _fixed(CommandKind.CLOSE_RANKS)),
]


def is_as_you_were(text: str) -> bool:
    """True for "As you were", which revokes the last command rather than naming one."""
    return normalize_phrase(text or "") == "as you were"


def parse_command(text: str) -> Command | ParseError:
    raw = (text or "").strip()
    if not raw:
        return ParseError(error="Empty command")

    phrase = normalize_phrase(raw)
    for pattern, build in _PHRASES:
        m = pattern.match(phrase)
        if m is not None:
            return build(m)
    return ParseError(error=f"Unrecognized command: {text}")
