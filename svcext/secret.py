# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Secrets registered here are replaced before they reach any log line or
exception message. Private configurations of extensions and passwords of
remote desktop users are registered when payloads are built.
"""

import re
from typing import Any, List, Optional, Pattern, Set, Tuple, Union

PATTERN_HEADTAIL = (
    re.compile(r"^([\w])[\W\w]+([\w])$"),
    r"\1****\2",
)

DEFAULT_SUB = "******"

_secret_list: List[Tuple[str, str]] = []
_secret_set: Set[str] = set()


def _replace(
    origin: str,
    pattern: Optional[Union[Pattern[str], Tuple[Pattern[str], str]]] = None,
    sub: str = DEFAULT_SUB,
) -> str:
    if not pattern:
        return sub
    if isinstance(pattern, tuple):
        pattern, sub = pattern
    result = pattern.sub(sub, origin)
    if result == origin:
        # the pattern doesn't match, hide all of it.
        result = DEFAULT_SUB
    return result


def add_secret(
    origin: Any,
    mask: Optional[Union[Pattern[str], Tuple[Pattern[str], str]]] = None,
    sub: str = DEFAULT_SUB,
) -> None:
    global _secret_list
    if not origin:
        return
    if not isinstance(origin, str):
        origin = str(origin)
    if origin in _secret_set:
        return
    _secret_set.add(origin)
    _secret_list.append((origin, _replace(origin, pattern=mask, sub=sub)))
    # replace longer ones first, so a shorter secret cannot break a longer one.
    _secret_list = sorted(_secret_list, reverse=True, key=lambda x: len(x[0]))


def mask(content: str) -> str:
    for origin, replaced in _secret_list:
        if origin in content:
            content = content.replace(origin, replaced)
    return content
