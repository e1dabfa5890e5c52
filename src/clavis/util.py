from __future__ import annotations

import typing

import msgspec

ESCAPES = {
    "n": "\n",
    "t": "\t",
}

# Characters that have to be escaped to survive a trip through unescape() and parse_call().
NEEDS_ESCAPE = {
    "\\": "\\\\",
    "\n": "\\n",
    "\t": "\\t",
    "(": "\\(",
    ")": "\\)",
    ",": "\\,",
}


class Call(msgspec.Struct, frozen=True):
    name: str
    args: tuple[str, ...]


def unescape(s: str) -> str:
    "Decode backslash escapes: \\n and \\t are control characters, any other escaped character stands for itself."
    out = []
    i = 0
    while i < len(s):
        ch = s[i]
        if ch == "\\" and i + 1 < len(s):
            nxt = s[i + 1]
            out.append(ESCAPES.get(nxt, nxt))
            i += 2
            continue
        out.append(ch)
        i += 1
    return "".join(out)


def escape(s: str) -> str:
    return "".join(NEEDS_ESCAPE.get(ch, ch) for ch in s)


def parse_call(s: str) -> typing.Optional[Call]:
    """Read ``name(arg1, arg2, ...)``.

    Arguments are split on commas at parenthesis depth zero; backslash escapes and nested parentheses
    are kept intact for whoever parses the argument. Surrounding spaces of an argument are dropped,
    and so are empty arguments. Anything after the closing parenthesis is ignored. Returns None if
    there is no opening parenthesis or the call is never closed.
    """
    open_paren = s.find("(")
    if open_paren == -1:
        return None
    name = s[:open_paren]
    args = []
    depth = 0
    i = open_paren + 1
    start = None
    while i < len(s):
        ch = s[i]
        if start is None:
            if ch == " ":
                i += 1
                continue
            start = i
        if ch == "\\" and i + 1 < len(s):
            i += 2
            continue
        if ch == "(":
            depth += 1
        elif ch == ")" and depth > 0:
            depth -= 1
        elif ch == ")" or (ch == "," and depth == 0):
            arg = s[start:i].rstrip(" ")
            if arg:
                args.append(arg)
            if ch == ")":
                return Call(name=name, args=tuple(args))
            start = None
        i += 1
    return None
