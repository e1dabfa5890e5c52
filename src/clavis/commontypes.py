import typing

import msgspec


class Handle(msgspec.Struct, frozen=True, array_like=True):
    """Index of a value stored in one of the Config pools.

    Each pool has its own handle subclass, and handles of different kinds never compare equal,
    so a macro index can't be passed off as a nested descriptor index.
    """

    index: int

    def __index__(self):
        return self.index


class LayerRef(Handle, frozen=True):
    pass


class MacroRef(Handle, frozen=True):
    pass


class CommandRef(Handle, frozen=True):
    pass


class DescriptorRef(Handle, frozen=True):
    pass


class ClavisError(Exception):
    pass


class ConfigError(ClavisError):
    """The configuration can't be loaded at all."""

    def __init__(self, message: str, path: typing.Optional[str] = None, lnum: typing.Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.path = path
        self.lnum = lnum

    def __str__(self):
        if self.path and self.lnum is not None:
            return f"{self.path}:{self.lnum}: {self.message}"
        if self.path:
            return f"{self.path}: {self.message}"
        if self.lnum is not None:
            return f"line {self.lnum}: {self.message}"
        return self.message


class CapacityError(ConfigError):
    pass


class BindingError(ClavisError):
    """A single binding expression failed to compile; the rest of the config is still usable."""

    def __init__(self, message: str, token: typing.Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.token = token


class LayerError(ClavisError):
    pass
