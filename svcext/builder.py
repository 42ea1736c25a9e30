# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import Dict, Iterable, List, Optional

from svcext.schema import (
    ExtensionConfiguration,
    ExtensionKind,
    ExtensionReference,
    RoleExtensions,
    RoleScope,
)
from svcext.store import ExtensionStore


class ExtensionConfigurationBuilder:
    """
    The working copy of which extensions are active on which roles. Ids in
    the default scope apply to every role, which doesn't have its own id of
    the same kind.

    Methods with "kind" look up records in the store to know the kind of
    an id. Role names are optional on most methods: None or an empty list
    means the default scope. The builder is filled from the current
    configuration of a deployment, changed in memory, and then converted
    back by to_configuration().
    """

    def __init__(
        self,
        store: ExtensionStore,
        configuration: Optional[ExtensionConfiguration] = None,
    ) -> None:
        self._store = store
        self._all_roles: List[str] = []
        self._named_roles: Dict[str, List[str]] = {}
        if configuration:
            self.add_configuration(configuration)

    @property
    def default_ids(self) -> List[str]:
        return list(self._all_roles)

    @property
    def role_names(self) -> List[str]:
        return list(self._named_roles.keys())

    def get_ids(self, role_name: str) -> List[str]:
        return list(self._named_roles.get(role_name, []))

    def get_scope_ids(self, scope: RoleScope) -> List[str]:
        if scope.is_default:
            return self.default_ids
        return self.get_ids(scope.role_name)

    # existence by id

    def exist_default(self, extension_id: str) -> bool:
        return extension_id in self._all_roles

    def exist(self, role_name: Optional[str], extension_id: str) -> bool:
        if not role_name or not role_name.strip():
            return self.exist_default(extension_id)
        return extension_id in self._named_roles.get(role_name, [])

    def exist_scope(self, scope: RoleScope, extension_id: str) -> bool:
        if scope.is_default:
            return self.exist_default(extension_id)
        return self.exist(scope.role_name, extension_id)

    def exist_any(self, extension_id: str) -> bool:
        return self.exist_default(extension_id) or any(
            extension_id in ids for ids in self._named_roles.values()
        )

    # existence by kind

    def exist_default_kind(self, kind: ExtensionKind) -> bool:
        return bool(self._filter_kind(self._all_roles, kind))

    def exist_any_kind(self, kind: ExtensionKind) -> bool:
        ids = list(self._all_roles)
        for role_ids in self._named_roles.values():
            ids.extend(role_ids)
        return bool(self._filter_kind(ids, kind))

    def exist_kind(
        self, role_names: Optional[Iterable[str]], kind: ExtensionKind
    ) -> bool:
        names = _normalize(role_names)
        if not names:
            return self.exist_default_kind(kind)
        ids: List[str] = []
        for name in names:
            ids.extend(self._named_roles.get(name, []))
        return bool(self._filter_kind(ids, kind))

    # add

    def add_default(self, extension_id: str) -> "ExtensionConfigurationBuilder":
        if extension_id not in self._all_roles:
            self._all_roles.append(extension_id)
        return self

    def add(
        self, role_names: Optional[Iterable[str]], extension_id: str
    ) -> "ExtensionConfigurationBuilder":
        names = _normalize(role_names)
        if not names:
            return self.add_default(extension_id)
        for name in names:
            ids = self._named_roles.setdefault(name, [])
            if extension_id not in ids:
                ids.append(extension_id)
        return self

    def add_scope(
        self, scope: RoleScope, extension_id: str
    ) -> "ExtensionConfigurationBuilder":
        if scope.is_default:
            return self.add_default(extension_id)
        return self.add([scope.role_name], extension_id)

    def add_configuration(
        self, configuration: Optional[ExtensionConfiguration]
    ) -> "ExtensionConfigurationBuilder":
        if configuration is None:
            return self
        for extension_id in configuration.default_ids:
            self.add_default(extension_id)
        for role in configuration.named_roles:
            for extension_id in role.ids:
                self.add([role.role_name], extension_id)
        return self

    # remove by id

    def remove_default(self, extension_id: str) -> "ExtensionConfigurationBuilder":
        if extension_id in self._all_roles:
            self._all_roles.remove(extension_id)
        return self

    def remove(
        self, role_names: Optional[Iterable[str]], extension_id: str
    ) -> "ExtensionConfigurationBuilder":
        names = _normalize(role_names)
        if not names:
            return self.remove_default(extension_id)
        for name in names:
            ids = self._named_roles.get(name)
            if ids and extension_id in ids:
                ids.remove(extension_id)
        return self

    def remove_scope(
        self, scope: RoleScope, extension_id: str
    ) -> "ExtensionConfigurationBuilder":
        if scope.is_default:
            return self.remove_default(extension_id)
        return self.remove([scope.role_name], extension_id)

    # remove by kind

    def remove_default_kind(
        self, kind: ExtensionKind
    ) -> "ExtensionConfigurationBuilder":
        matched = self._filter_kind(self._all_roles, kind)
        self._all_roles = [x for x in self._all_roles if x not in matched]
        return self

    def remove_any_kind(self, kind: ExtensionKind) -> "ExtensionConfigurationBuilder":
        self.remove_default_kind(kind)
        return self.remove_kind(self.role_names, kind)

    def remove_kind(
        self, role_names: Optional[Iterable[str]], kind: ExtensionKind
    ) -> "ExtensionConfigurationBuilder":
        names = _normalize(role_names)
        if not names:
            return self.remove_default_kind(kind)
        for name in names:
            ids = self._named_roles.get(name)
            if not ids:
                continue
            matched = self._filter_kind(ids, kind)
            self._named_roles[name] = [x for x in ids if x not in matched]
        return self

    def remove_scope_kind(
        self, scope: RoleScope, kind: ExtensionKind
    ) -> "ExtensionConfigurationBuilder":
        if scope.is_default:
            return self.remove_default_kind(kind)
        return self.remove_kind([scope.role_name], kind)

    def find_kind(self, scope: RoleScope, kind: ExtensionKind) -> List[str]:
        """
        Ids in the scope, whose records are the kind.
        """
        return self._filter_kind(self.get_scope_ids(scope), kind)

    def to_configuration(self) -> ExtensionConfiguration:
        # roles without extension are dropped, the service doesn't accept
        # an empty extension list of a role.
        return ExtensionConfiguration(
            all_roles=[ExtensionReference(id=x) for x in self._all_roles],
            named_roles=[
                RoleExtensions(
                    role_name=name,
                    extensions=[ExtensionReference(id=x) for x in ids],
                )
                for name, ids in self._named_roles.items()
                if ids
            ],
        )

    def _filter_kind(self, extension_ids: List[str], kind: ExtensionKind) -> List[str]:
        records = self._store.get_many(extension_ids)
        return [x for x in extension_ids if kind.matches(records.get(x))]


def _normalize(role_names: Optional[Iterable[str]]) -> List[str]:
    if role_names is None:
        return []
    if isinstance(role_names, str):
        role_names = [role_names]
    result: List[str] = []
    for name in role_names:
        if name and name.strip() and name not in result:
            result.append(name)
    return result
