import typing

from .commontypes import BindingError
from .configtypes import MAX_COMMAND_LEN, Command
from .util import unescape

COMMAND_PREFIX = "command("


def parse_command(s: str) -> typing.Optional[Command]:
    """Parse ``command(<shell text>)``.

    Returns None if the string isn't a command at all, and raises BindingError if it is one but the
    decoded text is too long.
    """
    if not (s.startswith(COMMAND_PREFIX) and s.endswith(")")):
        return None
    cmd = unescape(s[len(COMMAND_PREFIX) : -1])
    if len(cmd) > MAX_COMMAND_LEN:
        raise BindingError(f"max command length ({MAX_COMMAND_LEN}) exceeded", token=s)
    return Command(cmd=cmd)
