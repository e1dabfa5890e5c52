import logging
import re
import typing

from .commontypes import BindingError, CapacityError
from .composes import lookup_compose_index
from .configtypes import MAX_MACRO_SIZE, MAX_MACRO_SOURCE_LEN, Delay, Hold, KeyEntry, Macro, Release, Unicode
from .keycodes import lookup_character, parse_key_sequence
from .util import unescape

logger = logging.getLogger(__name__)

MACRO_PREFIX = "macro("
TIMEOUT_MATCHER = re.compile(r"^(\d+)ms$")


def is_macro_call(s: str) -> bool:
    return s.startswith(MACRO_PREFIX) and s.endswith(")")


def parse_timeout_token(token: str) -> typing.Optional[int]:
    "``250ms`` -> 250; None for anything else."
    if match := TIMEOUT_MATCHER.match(token):
        return int(match.group(1))
    return None


def parse_macro_expression(s: str) -> Macro:
    """Compile ``macro(...)``, a single key sequence, or a single character into a Macro.

    Raises BindingError for anything else.
    """
    if len(s) >= MAX_MACRO_SOURCE_LEN:
        raise CapacityError(f"macro exceeds maximum size ({MAX_MACRO_SOURCE_LEN})")
    if is_macro_call(s):
        body = s[len(MACRO_PREFIX) : -1]
    elif parse_key_sequence(s) is not None or len(s) == 1:
        body = s
    else:
        raise BindingError("invalid macro", token=s)
    return compile_macro(unescape(body))


class _EntryList(list):
    def add(self, entry):
        if len(self) >= MAX_MACRO_SIZE:
            raise CapacityError(f"maximum macro size ({MAX_MACRO_SIZE}) exceeded")
        self.append(entry)


def compile_macro(body: str) -> Macro:
    "Compile an unwrapped, unescaped macro body."
    entries = _EntryList()
    for token in body.split(" "):
        if not token:
            continue
        if (sequence := parse_key_sequence(token)) is not None:
            code, mods = sequence
            entries.add(KeyEntry(code=code, mods=mods))
        elif "+" in token:
            compile_chord(token, entries)
        elif (ms := parse_timeout_token(token)) is not None:
            entries.add(Delay(ms=ms))
        else:
            compile_text(token, entries)
    return Macro(entries=tuple(entries))


def compile_chord(token: str, entries: _EntryList):
    for piece in token.split("+"):
        if not piece:
            continue
        if (ms := parse_timeout_token(piece)) is not None:
            entries.add(Delay(ms=ms))
        elif (sequence := parse_key_sequence(piece)) is not None:
            entries.add(Hold(code=sequence[0]))
        else:
            raise BindingError(f"{piece} is not a valid key", token=piece)
    entries.add(Release())


def compile_text(token: str, entries: _EntryList):
    for ch in token:
        if ord(ch) < 128:
            if (typed := lookup_character(ch)) is not None:
                code, mods = typed
                entries.add(KeyEntry(code=code, mods=mods))
                continue
        elif (index := lookup_compose_index(ord(ch))) is not None:
            entries.add(Unicode(index=index))
            continue
        logger.debug("Skipping %r in macro: no key or compose sequence produces it", ch)
