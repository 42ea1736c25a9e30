# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import Iterable, List, Optional

from svcext.allocator import ExtensionIdAllocator
from svcext.builder import ExtensionConfigurationBuilder
from svcext.schema import (
    ExtensionConfiguration,
    ExtensionInput,
    ExtensionKind,
    ExtensionSettings,
    RoleScope,
)
from svcext.secret import add_secret
from svcext.store import ExtensionStore
from svcext.util.logger import Logger, get_logger


class ExtensionInstaller:
    """
    Installs and uninstalls extensions on scopes of a deployment. It returns
    the new extension configuration, and doesn't update the deployment. The
    caller sends it to the deployment.

    Remote calls run one by one. The configuration in memory is changed only
    after the remote call of the same step succeeded, so a failure leaves no
    half applied configuration to the caller.
    """

    def __init__(
        self,
        store: ExtensionStore,
        settings: Optional[ExtensionSettings] = None,
        log: Optional[Logger] = None,
    ) -> None:
        self._store = store
        self._settings = settings if settings else ExtensionSettings()
        self._log = log if log else get_logger("installer", store.service_name)
        self._allocator = ExtensionIdAllocator(
            store=store, settings=self._settings, log=self._log
        )

    @property
    def allocator(self) -> ExtensionIdAllocator:
        return self._allocator

    def create_builder(
        self, configuration: Optional[ExtensionConfiguration] = None
    ) -> ExtensionConfigurationBuilder:
        return ExtensionConfigurationBuilder(self._store, configuration)

    def install(
        self,
        configuration: Optional[ExtensionConfiguration],
        extension: ExtensionInput,
        slot: str = "",
    ) -> ExtensionConfiguration:
        slot = slot or self._settings.default_slot
        kind = extension.kind
        add_secret(extension.private_configuration)

        builder = self.create_builder(configuration)
        for scope in extension.role_scopes:
            self._install_scope(builder, scope, kind, extension, slot)
        return builder.to_configuration()

    def uninstall(
        self,
        configuration: Optional[ExtensionConfiguration],
        kind: ExtensionKind,
        role_names: Optional[Iterable[str]] = None,
        all_roles: bool = False,
    ) -> ExtensionConfiguration:
        builder = self.create_builder(configuration)
        scopes = self._get_scopes(role_names, all_roles)

        # find all before removing, an id may be shared by multiple scopes.
        matched = [(x, builder.find_kind(x, kind)) for x in scopes]
        removed: List[str] = []
        for scope, extension_ids in matched:
            for extension_id in extension_ids:
                builder.remove_scope(scope, extension_id)
                if extension_id not in removed:
                    removed.append(extension_id)
                self._log.info(f"removed '{extension_id}' ({kind}) from {scope}")

        if not removed:
            self._log.warning(
                f"no existing {kind} extension is enabled on "
                f"{', '.join(str(x) for x in scopes)}, nothing to remove."
            )
        for extension_id in removed:
            if builder.exist_any(extension_id):
                self._log.debug(f"kept '{extension_id}', it's used by other scopes")
                continue
            self._store.delete(extension_id)
        return builder.to_configuration()

    def _install_scope(
        self,
        builder: ExtensionConfigurationBuilder,
        scope: RoleScope,
        kind: ExtensionKind,
        extension: ExtensionInput,
        slot: str,
    ) -> None:
        allocation = self._allocator.allocate(
            builder=builder,
            scope=scope,
            kind=kind,
            slot=slot,
            thumbprint=extension.thumbprint,
            thumbprint_algorithm=extension.thumbprint_algorithm,
        )

        if allocation.stale_record:
            # extension cannot be updated, so the old one is deleted first.
            self._store.delete(allocation.id)
        self._store.add(
            extension.to_record(
                extension_id=allocation.id,
                thumbprint=allocation.thumbprint,
                thumbprint_algorithm=allocation.thumbprint_algorithm,
            )
        )

        builder.remove_scope_kind(scope, kind)
        builder.add_scope(scope, allocation.id)
        self._log.info(f"installed {kind} as '{allocation.id}' on {scope}")

    def _get_scopes(
        self, role_names: Optional[Iterable[str]], all_roles: bool
    ) -> List[RoleScope]:
        if isinstance(role_names, str):
            role_names = [role_names]
        names = [x for x in (role_names or []) if x and x.strip()]
        scopes: List[RoleScope] = []
        if all_roles or not names:
            scopes.append(RoleScope.default())
        for name in names:
            scope = RoleScope.named(name)
            if scope not in scopes:
                scopes.append(scope)
        return scopes
