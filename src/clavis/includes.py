import collections.abc
import logging
import pathlib
import typing

from .commontypes import ConfigError
from .configtypes import MAX_FILE_SIZE, MAX_LINE_LEN

logger = logging.getLogger(__name__)

INCLUDE_PREFIX = "include "
SYSTEM_INCLUDE_DIRS = (pathlib.Path("/usr/share/keyd"),)


def split_lines(text: str) -> list[str]:
    "Split on ``\\n`` only; a final newline doesn't start another line."
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return lines


def resolve_include_path(
    path: pathlib.Path, include_name: str, include_dirs: collections.abc.Iterable[pathlib.Path]
) -> typing.Optional[pathlib.Path]:
    # No dots at all: rules out extensions as well as .. path segments.
    if not include_name or "." in include_name:
        return None
    for directory in (path.parent, *include_dirs):
        # plain concatenation, so an absolute name stays under the directory
        candidate = pathlib.Path(f"{directory}/{include_name}")
        if candidate.exists():
            return candidate
    return None


def read_config_text(
    path: typing.Union[str, pathlib.Path],
    include_dirs: collections.abc.Iterable[pathlib.Path] = SYSTEM_INCLUDE_DIRS,
) -> str:
    """Read a config file, replacing each ``include <name>`` line with the contents of that file.

    Included files are inserted verbatim; they are not scanned for further includes.
    """
    path = pathlib.Path(path)
    include_dirs = tuple(include_dirs)
    try:
        raw = path.read_bytes().decode("utf-8")
    except OSError as exc:
        raise ConfigError(f"failed to open: {exc.strerror}", path=str(path)) from exc
    except UnicodeDecodeError as exc:
        raise ConfigError("file is not valid UTF-8", path=str(path)) from exc

    parts = []
    size = 0

    def append(chunk: str, lnum: int):
        nonlocal size
        size += len(chunk.encode("utf-8"))
        if size > MAX_FILE_SIZE:
            raise ConfigError(f"maximum file size exceeded ({MAX_FILE_SIZE})", path=str(path), lnum=lnum)
        parts.append(chunk)

    for lnum, line in enumerate(split_lines(raw), start=1):
        line += "\n"
        if len(line.encode("utf-8")) >= MAX_LINE_LEN:
            raise ConfigError(f"maximum line length exceeded ({MAX_LINE_LEN})", path=str(path), lnum=lnum)
        if not line.startswith(INCLUDE_PREFIX):
            append(line, lnum)
            continue

        include_name = line[len(INCLUDE_PREFIX) :].strip()
        resolved = resolve_include_path(path, include_name, include_dirs)
        if resolved is None:
            logger.warning("%s:%d: failed to resolve include path: %s", path, lnum, include_name)
            continue
        try:
            included = resolved.read_bytes().decode("utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("%s:%d: failed to include %s: %s", path, lnum, include_name, exc)
            continue
        if included and not included.endswith("\n"):
            included += "\n"
        append(included, lnum)

    return "".join(parts)
