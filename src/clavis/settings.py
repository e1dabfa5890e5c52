import dataclasses

import cattrs

GLOBAL_DEFAULTS = {
    "macro_timeout": 600,
    "macro_sequence_timeout": 0,
    "macro_repeat_timeout": 50,
    "layer_indicator": 0,
    "default_layout": "",
}


def structure_nonnegative_int(v, _):
    if isinstance(v, int):
        value = v
    else:
        v = v.strip()
        if not v.isdigit():
            raise ValueError(f"{v!r} is not a non-negative integer")
        value = int(v)
    if value < 0:
        raise ValueError(f"{v!r} is not a non-negative integer")
    return value


settings_converter = cattrs.Converter()
settings_converter.register_structure_hook(int, structure_nonnegative_int)
settings_converter.register_structure_hook(str, lambda v, _: str(v).strip())


@dataclasses.dataclass(kw_only=True, frozen=True)
class GlobalSettings:
    # All timeouts are in milliseconds.
    macro_timeout: int
    macro_sequence_timeout: int
    macro_repeat_timeout: int
    # Keycode of the LED-able key used to signal that a layer is active; 0 for none.
    layer_indicator: int
    default_layout: str

    def with_option(self, key: str, value: str) -> "GlobalSettings":
        """Return a copy with one option set from its raw config text.

        Raises KeyError for an unknown option and ValueError for a malformed value.
        """
        fields = {f.name: f for f in dataclasses.fields(self)}
        if key not in fields:
            raise KeyError(key)
        return dataclasses.replace(self, **{key: settings_converter.structure(value, fields[key].type)})

    @classmethod
    def defaults(cls):
        return settings_converter.structure(GLOBAL_DEFAULTS, cls)
