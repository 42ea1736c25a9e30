# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import logging
from dataclasses import replace
from typing import Iterable, List, Optional

from svcext.channel import ManagementChannel
from svcext.installer import ExtensionInstaller
from svcext.kinds import REMOTE_DESKTOP, exist_legacy_setting
from svcext.schema import (
    DeploymentSnapshot,
    DeploymentUpdate,
    ExtensionConfiguration,
    ExtensionContext,
    ExtensionInput,
    ExtensionKind,
    ExtensionSettings,
    RoleScope,
)
from svcext.store import ExtensionStore
from svcext.util import NotFoundError, ServiceExtensionException, constants
from svcext.util.logger import Logger, get_logger


class ServiceExtensionManager:
    """
    Manages extensions of a cloud service. It checks the deployment and
    roles, changes the extension configuration, and sends it back to the
    deployment.

    There is no concurrency control on the deployment. If two managers
    change the same deployment at the same time, the last update wins.
    """

    def __init__(
        self,
        channel: ManagementChannel,
        service_name: str,
        settings: Optional[ExtensionSettings] = None,
        log: Optional[Logger] = None,
    ) -> None:
        if not service_name or not service_name.strip():
            raise ValueError("service name cannot be empty")
        self.service_name = service_name
        self._channel = channel
        self._settings = settings if settings else ExtensionSettings()
        self._log = log if log else get_logger("manager", service_name)
        self._store = ExtensionStore(channel, service_name, log=self._log)
        self._installer = ExtensionInstaller(
            self._store, settings=self._settings, log=self._log
        )

    @property
    def store(self) -> ExtensionStore:
        return self._store

    @property
    def installer(self) -> ExtensionInstaller:
        return self._installer

    def get_deployment(self, slot: str = "") -> DeploymentSnapshot:
        slot = slot or self._settings.default_slot
        return self._channel.get_deployment(self.service_name, slot)

    def validate_roles(
        self, deployment: DeploymentSnapshot, roles: Optional[Iterable[str]]
    ) -> List[str]:
        if roles is None:
            return []
        if isinstance(roles, str):
            roles = [roles]
        result: List[str] = []
        for role in roles:
            role = role.strip() if role else ""
            if not role:
                raise NotFoundError("role name cannot be empty")
            if role not in deployment.role_list:
                raise NotFoundError(
                    f"role '{role}' is not found in deployment '{deployment.slot}' "
                    f"of service '{self.service_name}'"
                )
            if role not in result:
                result.append(role)
        return result

    def set_extension(
        self, extension: ExtensionInput, slot: str = ""
    ) -> ExtensionConfiguration:
        deployment = self.get_deployment(slot)
        named_roles = self.validate_roles(deployment, extension.named_roles)
        self._check_legacy_setting(deployment, extension.kind)
        extension = replace(extension, named_roles=named_roles)

        self._log.info(
            f"setting {extension.kind} on "
            f"{', '.join(str(x) for x in extension.role_scopes)} "
            f"of '{self.service_name}' in slot '{deployment.slot}'"
        )
        configuration = self._installer.install(
            deployment.extension_configuration, extension, slot=deployment.slot
        )
        self._update_deployment(deployment, configuration)
        return configuration

    def remove_extension(
        self,
        kind: ExtensionKind,
        roles: Optional[Iterable[str]] = None,
        slot: str = "",
        uninstall_configuration: bool = False,
    ) -> ExtensionConfiguration:
        deployment = self.get_deployment(slot)
        role_names = self.validate_roles(deployment, roles)
        self._check_legacy_setting(deployment, kind)
        configuration = deployment.extension_configuration

        builder = self._installer.create_builder(configuration)
        if builder.exist_kind(role_names, kind):
            if role_names:
                default_exists = builder.exist_default_kind(kind)
                for role in role_names:
                    self._log.info(f"removing {kind} from role '{role}'")
                    if default_exists:
                        self._log.info(
                            f"role '{role}' uses {kind} of all roles after removed."
                        )
            else:
                self._log.info(f"removing {kind} from all roles")
            configuration = self._installer.uninstall(configuration, kind, role_names)
            self._update_deployment(deployment, configuration)
        else:
            self._log.warning(
                f"no existing {kind} extension is enabled on the role(s), "
                "the deployment isn't changed."
            )

        if uninstall_configuration:
            self.purge_unreferenced(kind)
        return configuration

    def get_extensions(
        self, kind: Optional[ExtensionKind] = None, slot: str = ""
    ) -> List[ExtensionContext]:
        deployment = self.get_deployment(slot)
        configuration = deployment.extension_configuration
        records = {x.id: x for x in self._store.list()}

        scoped_ids = [(RoleScope.default(), x) for x in configuration.default_ids]
        for role in configuration.named_roles:
            scoped_ids.extend((RoleScope.named(role.role_name), x) for x in role.ids)

        contexts: List[ExtensionContext] = []
        for scope, extension_id in scoped_ids:
            record = records.get(extension_id)
            if record is None:
                self._log.debug(f"skipped '{extension_id}', its record is not found")
                continue
            if kind is None or kind.matches(record):
                contexts.append(
                    ExtensionContext(slot=deployment.slot, scope=scope, record=record)
                )
        return contexts

    def purge_unreferenced(self, kind: ExtensionKind) -> List[str]:
        """
        Delete records of the kind, which are not used by any deployment
        slot. Rotated ids leave old records behind, they are cleaned up
        here.
        """
        builder = self._installer.create_builder()
        for slot in constants.DEPLOYMENT_SLOTS:
            try:
                deployment = self._channel.get_deployment(self.service_name, slot)
            except NotFoundError:
                self._log.debug(f"no deployment in slot '{slot}', skipped")
                continue
            builder.add_configuration(deployment.extension_configuration)

        deleted: List[str] = []
        for record in self._store.list():
            if kind.matches(record) and not builder.exist_any(record.id):
                self._store.delete(record.id)
                deleted.append(record.id)
        if deleted:
            self._log.info(f"deleted unused {kind} extensions: {', '.join(deleted)}")
        return deleted

    def _check_legacy_setting(
        self, deployment: DeploymentSnapshot, kind: ExtensionKind
    ) -> None:
        if kind != REMOTE_DESKTOP:
            return
        if exist_legacy_setting(
            deployment.configuration, constants.LEGACY_REMOTE_ACCESS_SETTING
        ):
            raise ServiceExtensionException(
                f"legacy remote desktop is enabled already in deployment "
                f"'{deployment.slot}' of service '{self.service_name}'. "
                "Disable it in the service configuration, before changing the "
                "remote desktop extension."
            )

    def _update_deployment(
        self, deployment: DeploymentSnapshot, configuration: ExtensionConfiguration
    ) -> None:
        update = DeploymentUpdate(
            configuration=deployment.configuration,
            extended_properties=dict(deployment.extended_properties),
            extension_configuration=configuration,
            mode=self._settings.change_mode,
            treat_warnings_as_error=self._settings.treat_warnings_as_error,
        )
        self._log.dump_json(
            logging.DEBUG,
            update.extension_configuration.to_dict(),
            prefix="new configuration: ",
        )
        self._channel.update_deployment(self.service_name, deployment.slot, update)
