from __future__ import annotations

import dataclasses
import enum
import logging
import typing

from .commands import parse_command
from .commontypes import BindingError
from .configtypes import (
    AnyDescriptor,
    Clear,
    KeySequence,
    LayerKind,
    LayerHold,
    Macro2,
    Oneshot,
    Overload,
    RunCommand,
    RunMacro,
    SetLayout,
    Swap,
    Swap2,
    Timeout,
    Toggle,
    Toggle2,
)
from .keycodes import is_modifier_code, parse_key_sequence
from .macros import is_macro_call, parse_macro_expression
from .util import Call, parse_call

if typing.TYPE_CHECKING:
    from .builder import ConfigBuilder

logger = logging.getLogger(__name__)


class ArgType(enum.Enum):
    LAYER = enum.auto()
    LAYOUT = enum.auto()
    TIMEOUT = enum.auto()
    DESCRIPTOR = enum.auto()
    MACRO = enum.auto()


@dataclasses.dataclass(frozen=True)
class Action:
    name: str
    descriptor: type
    args: tuple[ArgType, ...]


ACTIONS = {
    action.name: action
    for action in (
        Action("swap", Swap, (ArgType.LAYER,)),
        Action("swap2", Swap2, (ArgType.LAYER, ArgType.MACRO)),
        Action("clear", Clear, ()),
        Action("oneshot", Oneshot, (ArgType.LAYER,)),
        Action("toggle", Toggle, (ArgType.LAYER,)),
        Action("toggle2", Toggle2, (ArgType.LAYER, ArgType.MACRO)),
        Action("layer", LayerHold, (ArgType.LAYER,)),
        Action("overload", Overload, (ArgType.LAYER, ArgType.DESCRIPTOR)),
        Action("timeout", Timeout, (ArgType.DESCRIPTOR, ArgType.TIMEOUT, ArgType.DESCRIPTOR)),
        Action("macro2", Macro2, (ArgType.TIMEOUT, ArgType.TIMEOUT, ArgType.MACRO)),
        Action("setlayout", SetLayout, (ArgType.LAYOUT,)),
    )
}
ACTION_NAMES = {action.descriptor: name for name, action in ACTIONS.items()}


def parse_descriptor(s: str, builder: ConfigBuilder) -> typing.Optional[AnyDescriptor]:
    """Compile the right-hand side of a binding.

    An empty string compiles to None, which leaves the keymap slot empty. Macros, commands and nested
    descriptors are appended to the builder's pools and referenced by handle.
    """
    if not s:
        return None

    if (sequence := parse_key_sequence(s)) is not None:
        code, mods = sequence
        if is_modifier_code(code):
            logger.warning("%s: mapping modifier keycodes directly may produce unintended results", s)
        return KeySequence(code=code, mods=mods)

    if (command := parse_command(s)) is not None:
        return RunCommand(command=builder.add_command(command))

    if is_macro_call(s) or len(s) == 1:
        return RunMacro(macro=builder.add_macro(parse_macro_expression(s)))

    if (call := parse_call(s)) is not None and call.name in ACTIONS:
        return compile_action(ACTIONS[call.name], call, builder)

    raise BindingError("invalid key or action", token=s)


def compile_action(action: Action, call: Call, builder: ConfigBuilder) -> AnyDescriptor:
    expected = len(action.args)
    if len(call.args) != expected:
        raise BindingError(
            f"{action.name} requires {expected} {'argument' if expected == 1 else 'arguments'}",
            token=action.name,
        )
    values = [resolve_arg(arg_type, arg, builder) for arg_type, arg in zip(action.args, call.args)]
    return action.descriptor(*values)


def resolve_arg(arg_type: ArgType, arg: str, builder: ConfigBuilder):
    match arg_type:
        case ArgType.LAYER:
            if arg == "main":
                raise BindingError("the main layer cannot be toggled", token=arg)
            ref = builder.layer_index(arg)
            if ref is None or builder.layer(ref).kind is LayerKind.LAYOUT:
                raise BindingError(f"{arg} is not a valid layer", token=arg)
            return ref
        case ArgType.LAYOUT:
            ref = builder.layer_index(arg)
            if ref is None or builder.layer(ref).kind is not LayerKind.LAYOUT:
                raise BindingError(f"{arg} is not a valid layout", token=arg)
            return ref
        case ArgType.TIMEOUT:
            if not (arg.isascii() and arg.isdigit()):
                raise BindingError(f"{arg} is not a valid timeout", token=arg)
            return int(arg)
        case ArgType.DESCRIPTOR:
            return builder.add_descriptor(parse_descriptor(arg, builder))
        case ArgType.MACRO:
            return builder.add_macro(parse_macro_expression(arg))
