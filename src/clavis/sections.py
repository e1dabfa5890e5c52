import typing

import msgspec

from .commontypes import ConfigError


class Entry(msgspec.Struct, frozen=True):
    key: str
    value: typing.Optional[str]
    lnum: int


class Section(msgspec.Struct, frozen=True):
    name: str
    lnum: int
    entries: tuple[Entry, ...]


def parse_kvp(s: str) -> tuple[str, typing.Optional[str]]:
    """Split ``key = value`` on the first ``=``.

    A leading ``=`` is part of the key, so ``= = x`` binds the equals key. Without an ``=`` the
    whole string is the key and the value is None.
    """
    start = 1 if s.startswith("=") else 0
    sep = s.find("=", start)
    if sep == -1:
        return s.strip(), None
    return s[:sep].strip(), s[sep + 1 :].strip()


def parse_sections(text: str, path: typing.Optional[str] = None) -> tuple[Section, ...]:
    parsed = []
    current = None
    for lnum, line in enumerate(text.split("\n"), start=1):
        line = line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("["):
            if not line.endswith("]") or len(line) < 3:
                raise ConfigError("malformed section header", path=path, lnum=lnum)
            if current is not None:
                parsed.append(current)
            current = {"name": line[1:-1].strip(), "lnum": lnum, "entries": []}
            continue
        if current is None:
            raise ConfigError("entry is not under any section", path=path, lnum=lnum)
        key, value = parse_kvp(line)
        current["entries"].append(Entry(key=key, value=value, lnum=lnum))
    if current is not None:
        parsed.append(current)
    return tuple(Section(name=s["name"], lnum=s["lnum"], entries=tuple(s["entries"])) for s in parsed)
