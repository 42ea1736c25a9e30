# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import json
import logging
import time
from functools import partial
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Union, cast

from svcext.secret import mask
from svcext.util import is_unittest

DEFAULT_LOG_NAME = "svcext"


class Logger(logging.Logger):
    def lines(
        self,
        level: int,
        content: Union[str, List[str], Dict[str, str]],
        prefix: str = "",
    ) -> None:
        if isinstance(content, str):
            content = content.splitlines(False)
        elif isinstance(content, dict):
            content = [f"{key}: {value}" for key, value in content.items()]
        for line in content:
            line = line.strip("\r\n")
            if not line or line.isspace():
                continue
            self.log(level, f"{prefix}{line}")

    def dump_json(self, level: int, content: Any, prefix: str = "") -> None:
        if content:
            content = json.dumps(content, indent=2)
            self.lines(level=level, content=content, prefix=prefix)

    def _log(
        self,
        level: int,
        msg: Any,
        args: Any,
        exc_info: Any = None,
        extra: Optional[Mapping[str, object]] = None,
        stack_info: bool = False,
        stacklevel: int = 1,
    ) -> None:
        msg = self._filter_secrets(msg)
        args = self._filter_secrets(args)

        return super()._log(
            level,
            msg,
            args,
            exc_info=exc_info,
            extra=extra,
            stack_info=stack_info,
            stacklevel=stacklevel,
        )

    def _filter_secrets(self, value: Any) -> Any:
        if isinstance(value, str):
            value = mask(value)
        elif isinstance(value, Exception):
            value.args = tuple(
                mask(arg) if isinstance(arg, str) else arg for arg in value.args
            )
        elif isinstance(value, tuple):
            value = tuple(self._filter_secrets(list(value)))
        elif isinstance(value, list):
            for index, item in enumerate(value):
                value[index] = self._filter_secrets(item)
        return value


_get_root_logger = partial(logging.getLogger, DEFAULT_LOG_NAME)

_format = logging.Formatter(
    fmt="%(asctime)s.%(msecs)03d[%(thread)d][%(levelname)s] %(name)s %(message)s",
    datefmt="%Y-%m-%d %H:%M:%S",
)

_console_handler = logging.StreamHandler()


def init_logger() -> None:
    logging.Formatter.converter = time.gmtime
    logging.setLoggerClass(Logger)

    root_logger = _get_root_logger()
    root_logger.setLevel(logging.DEBUG)
    if _console_handler not in root_logger.handlers:
        _console_handler.setLevel(logging.INFO)
        root_logger.addHandler(_console_handler)


def add_handler(
    handler: logging.Handler,
    logger: Optional[logging.Logger] = None,
    formatter: Optional[logging.Formatter] = None,
) -> None:
    if logger is None:
        logger = _get_root_logger()
    # always include details in log file
    handler.setLevel(logging.DEBUG)
    if not formatter:
        formatter = _format
    handler.setFormatter(formatter)
    logger.addHandler(handler)


def remove_handler(
    log_handler: logging.Handler, logger: Optional[logging.Logger] = None
) -> None:
    if logger is None:
        logger = _get_root_logger()
    logger.removeHandler(log_handler)


def create_file_handler(
    path: Path,
    logger: Optional[logging.Logger] = None,
    formatter: Optional[logging.Formatter] = None,
) -> Optional[logging.FileHandler]:
    # skip to create log file in UT
    if is_unittest():
        return None

    file_handler = logging.FileHandler(path, "w", "utf-8")
    add_handler(file_handler, logger, formatter)
    return file_handler


def set_console_level(level: int) -> None:
    _console_handler.setLevel(level)


def get_logger(
    name: str = "", id_: str = "", parent: Optional[Logger] = None
) -> Logger:
    if not name:
        name = ""
    if id_:
        name = f"{name}[{id_}]"
    if not parent:
        parent = cast(Logger, _get_root_logger())
    logger: Logger = cast(Logger, parent.getChild(name))

    return logger
