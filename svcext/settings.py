# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from functools import partial
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from svcext.schema import ExtensionSettings, load_by_type
from svcext.util import SettingsException, constants
from svcext.util.logger import get_logger

_get_init_logger = partial(get_logger, "init", "settings")


def load_settings(path: Optional[Union[str, Path]] = None) -> ExtensionSettings:
    """
    Load settings from a yaml file. Keys can be at the top level, or under
    the "extension" key, so the file can be shared with other tools. Values,
    which are not in the file, use defaults.
    """
    if path is None:
        return ExtensionSettings()

    path = Path(path)
    log = _get_init_logger()
    log.info(f"loading settings: {path}")
    if not path.exists():
        raise SettingsException(f"cannot find settings file: {path}")
    with open(path, "r") as file:
        data = yaml.safe_load(file)

    return parse_settings(data)


def parse_settings(data: Any) -> ExtensionSettings:
    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise SettingsException(
            f"settings must be a mapping, but it's '{type(data).__name__}'"
        )
    raw: Dict[str, Any] = data.get(constants.SETTINGS_ROOT_KEY, data)
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise SettingsException(
            f"'{constants.SETTINGS_ROOT_KEY}' must be a mapping, but it's '{raw}'"
        )

    settings = load_by_type(ExtensionSettings, raw)
    log = _get_init_logger()
    log.debug(f"loaded settings: {settings}")
    return settings
