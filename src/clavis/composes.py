from __future__ import annotations

import collections.abc
import logging
import typing
import unicodedata

import pygtrie

logger = logging.getLogger(__name__)

# Sequences typed after the compose key, written as space-separated characters.
COMPOSE_SEQUENCES = {
    "< <": "«",
    "> >": "»",
    "< '": "‘",
    "' <": "‘",
    "> '": "’",
    "' >": "’",
    '< "': "“",
    '" <': "“",
    '> "': "”",
    '" >': "”",
    "' '": "ʼ",
    ". .": "…",
    "- - -": "—",
    "- - .": "–",
    "! !": "¡",
    "? ?": "¿",
    "1 4": "¼",
    "1 2": "½",
    "3 4": "¾",
    "o x": "¤",
    "x o": "¤",
    "o C": "©",
    "O c": "©",
    "O C": "©",
    "p !": "¶",
    "P !": "¶",
    "P P": "¶",
    "A E": "Æ",
    "a e": "æ",
    "O E": "Œ",
    "o e": "œ",
    "s s": "ß",
    "L -": "£",
    "Y =": "¥",
    "C =": "€",
    "+ -": "±",
    "x x": "×",
    ": -": "÷",
    "^ 1": "¹",
    "^ 2": "²",
    "^ 3": "³",
    "o o": "°",
    "m u": "µ",
    "/ o": "ø",
    "/ O": "Ø",
    "t h": "þ",
    "T H": "Þ",
    "d h": "ð",
    "D H": "Ð",
}

# Combining marks and the dead-key character that introduces them.
DEAD_KEYS = {
    "\u0300": "`",
    "\u0301": "'",
    "\u0302": "^",
    "\u0303": "~",
    "\u0304": "-",
    "\u0306": "u",
    "\u0307": ".",
    "\u0308": '"',
    "\u030a": "o",
    "\u030c": "c",
    "\u0327": ",",
    "\u0328": ";",
}

# Latin-1 Supplement and Latin Extended-A
ACCENTED_RANGE = range(0xC0, 0x180)


def accented_sequences() -> typing.Iterator[tuple[str, str]]:
    for codepoint in ACCENTED_RANGE:
        ch = chr(codepoint)
        decomposed = unicodedata.normalize("NFD", ch)
        if len(decomposed) == 2 and decomposed[1] in DEAD_KEYS:
            yield f"{DEAD_KEYS[decomposed[1]]} {decomposed[0]}", ch


class ComposeTable:
    """Characters the runtime can emit through the compose key, each with a stable index.

    Macro compilation only stores the index; the runtime asks for the key sequence that types it.
    """

    def __init__(self, sequences: collections.abc.Iterable[tuple[str, str]]):
        self.sequences = pygtrie.Trie()
        self._characters: list[str] = []
        self._sequence_for_index: list[tuple[str, ...]] = []
        self._index_for_character: dict[str, int] = {}
        for raw_sequence, result in sequences:
            self.add(tuple(raw_sequence.split()), result)

    def add(self, sequence: tuple[str, ...], result: str):
        # a sequence can't be typed if another one is a prefix of it, or it is a prefix of another
        if self.sequences.has_node(sequence) or next(self.sequences.prefixes(sequence), None) is not None:
            logger.debug("Skipping ambiguous compose sequence %r for %r", sequence, result)
            return
        self.sequences[sequence] = result
        if result not in self._index_for_character:
            self._index_for_character[result] = len(self._characters)
            self._characters.append(result)
            self._sequence_for_index.append(sequence)

    def __len__(self):
        return len(self._characters)

    def lookup_index(self, codepoint: int) -> typing.Optional[int]:
        return self._index_for_character.get(chr(codepoint))

    def character(self, index: int) -> str:
        return self._characters[index]

    def sequence(self, index: int) -> tuple[str, ...]:
        return self._sequence_for_index[index]

    def result(self, sequence: collections.abc.Sequence[str]) -> typing.Optional[str]:
        return self.sequences.get(tuple(sequence))


COMPOSE_TABLE = ComposeTable([*COMPOSE_SEQUENCES.items(), *accented_sequences()])


def lookup_compose_index(codepoint: int) -> typing.Optional[int]:
    return COMPOSE_TABLE.lookup_index(codepoint)
