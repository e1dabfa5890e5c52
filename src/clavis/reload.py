import collections.abc
import logging
import pathlib
import typing

import trio
import trio_util

from .commontypes import ConfigError
from .config import parse_config
from .configtypes import Config
from .includes import SYSTEM_INCLUDE_DIRS

logger = logging.getLogger(__name__)


class ConfigSlot:
    """The config currently in effect for one file.

    A reload compiles a complete new Config before touching ``current``, so readers only ever see
    the old snapshot or the new one. Await ``current.wait_transition()`` to hear about swaps.
    """

    current: trio_util.AsyncValue[typing.Optional[Config]]

    def __init__(
        self,
        path: typing.Union[str, pathlib.Path],
        include_dirs: collections.abc.Iterable[pathlib.Path] = SYSTEM_INCLUDE_DIRS,
    ):
        self.path = pathlib.Path(path)
        self.include_dirs = tuple(include_dirs)
        self.current = trio_util.AsyncValue(None)

    def reload(self) -> bool:
        try:
            config = parse_config(self.path, include_dirs=self.include_dirs)
        except ConfigError as exc:
            logger.error("Failed to load %s, keeping the previous config: %s", self.path, exc)
            return False
        self.current.value = config
        logger.info("Loaded %s", self.path)
        return True

    async def wait_loaded(self) -> Config:
        return await self.current.wait_value(lambda config: config is not None)

    async def serve(self, requests: trio.abc.ReceiveChannel, *, task_status=trio.TASK_STATUS_IGNORED):
        "Reload once per item received on ``requests``, until the channel is closed."
        task_status.started()
        async for _ in requests:
            self.reload()
