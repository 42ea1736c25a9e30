# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.
import sys
from typing import Any, Callable, Iterable, List, Optional, TypeVar, cast

from dataclasses_json import config
from marshmallow import fields

from svcext import secret

T = TypeVar("T")


class ServiceExtensionException(Exception):
    def __init__(self, *args: object) -> None:
        args = tuple(secret.mask(arg) if isinstance(arg, str) else arg for arg in args)
        super().__init__(*args)


class NotFoundError(ServiceExtensionException):
    """
    A referenced role, deployment or extension record doesn't exist.
    """

    ...


class DuplicateIdError(ServiceExtensionException):
    """
    An extension record with the same id is registered already. It means a
    race with another caller, or records are added in a wrong order.
    """

    def __init__(self, extension_id: str, service_name: str = "") -> None:
        self.extension_id = extension_id
        self.service_name = service_name

    def __str__(self) -> str:
        message = f"extension '{self.extension_id}' exists already"
        if self.service_name:
            message = f"{message} in service '{self.service_name}'"
        return message


class PoolExhaustedError(ServiceExtensionException):
    """
    All candidate ids of a scope and type are referenced by the configuration,
    so there is no id to install a replacement under.
    """

    def __init__(self, candidates: List[str]) -> None:
        self.candidates = candidates

    def __str__(self) -> str:
        return (
            "no available extension id, all candidates are in use: "
            f"{', '.join(self.candidates)}. Increase the pool size or remove "
            "unused extensions first."
        )


class TypeConflictError(ServiceExtensionException):
    """
    An existing record occupies the id, but it's a different kind of
    extension. It cannot be overwritten.
    """

    def __init__(self, extension_id: str, existing: str, expected: str) -> None:
        self.extension_id = extension_id
        self.existing = existing
        self.expected = expected

    def __str__(self) -> str:
        return (
            f"an extension with id '{self.extension_id}' and type "
            f"'{self.existing}' exists already. It cannot be overwritten by "
            f"'{self.expected}'."
        )


class SettingsException(ServiceExtensionException):
    ...


def field_metadata(
    field_function: Optional[Callable[..., Any]] = None, *args: Any, **kwargs: Any
) -> Any:
    """
    wrap for shorter
    """
    if field_function is None:
        field_function = fields.Raw
    assert field_function
    # keep data_key for underlying marshmallow
    field_name = kwargs.get("data_key")
    return config(
        field_name=cast(str, field_name),
        mm_field=field_function(*args, **kwargs),
    )


def wire_name(name: str) -> Any:
    return config(field_name=name)


def is_unittest() -> bool:
    return "unittest" in sys.argv[0]


def unique(items: Iterable[T]) -> List[T]:
    """
    Remove duplicated items, and keep the original order.
    """
    result: List[T] = []
    for item in items:
        if item not in result:
            result.append(item)
    return result
