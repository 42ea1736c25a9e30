# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

import copy
from typing import Dict, List, Optional, Tuple

from svcext.schema import DeploymentSnapshot, DeploymentUpdate, ExtensionRecord
from svcext.util import DuplicateIdError, NotFoundError
from svcext.util.logger import Logger, get_logger


class ManagementChannel:
    """
    The calls to the service management API, which extensions need. The
    implementation owns authentication, transport, retry and throttling.
    Each call is a blocking round trip and returns the current remote state.
    """

    def list_extension_records(self, service_name: str) -> List[ExtensionRecord]:
        raise NotImplementedError()

    def add_extension_record(self, service_name: str, record: ExtensionRecord) -> None:
        """
        raise DuplicateIdError, if the id exists.
        """
        raise NotImplementedError()

    def delete_extension_record(self, service_name: str, extension_id: str) -> None:
        """
        raise NotFoundError, if the id doesn't exist.
        """
        raise NotImplementedError()

    def get_deployment(self, service_name: str, slot: str) -> DeploymentSnapshot:
        """
        raise NotFoundError, if there is no deployment in the slot.
        """
        raise NotImplementedError()

    def update_deployment(
        self, service_name: str, slot: str, update: DeploymentUpdate
    ) -> None:
        raise NotImplementedError()


class InMemoryChannel(ManagementChannel):
    """
    Keeps records and deployments in memory. It behaves like the remote
    service on duplicated and missing ids, so it's used to try changes
    without a subscription, and in tests.
    """

    def __init__(self, log: Optional[Logger] = None) -> None:
        self._log = log if log else get_logger("channel", "memory")
        self._records: Dict[str, Dict[str, ExtensionRecord]] = {}
        self._deployments: Dict[Tuple[str, str], DeploymentSnapshot] = {}
        self.updates: List[Tuple[str, str, DeploymentUpdate]] = []

    def set_deployment(self, service_name: str, deployment: DeploymentSnapshot) -> None:
        self._deployments[(service_name, deployment.slot)] = deployment

    def list_extension_records(self, service_name: str) -> List[ExtensionRecord]:
        return list(self._records.get(service_name, {}).values())

    def add_extension_record(self, service_name: str, record: ExtensionRecord) -> None:
        records = self._records.setdefault(service_name, {})
        if record.id in records:
            raise DuplicateIdError(record.id, service_name)
        records[record.id] = record
        self._log.debug(f"added extension '{record.id}' to '{service_name}'")

    def delete_extension_record(self, service_name: str, extension_id: str) -> None:
        records = self._records.get(service_name, {})
        if extension_id not in records:
            raise NotFoundError(
                f"extension '{extension_id}' is not found in '{service_name}'"
            )
        del records[extension_id]
        self._log.debug(f"deleted extension '{extension_id}' from '{service_name}'")

    def get_deployment(self, service_name: str, slot: str) -> DeploymentSnapshot:
        deployment = self._deployments.get((service_name, slot))
        if deployment is None:
            raise NotFoundError(
                f"deployment is not found in service: '{service_name}' "
                f"and slot: '{slot}'"
            )
        return deployment

    def update_deployment(
        self, service_name: str, slot: str, update: DeploymentUpdate
    ) -> None:
        current = self.get_deployment(service_name, slot)
        self._deployments[(service_name, slot)] = DeploymentSnapshot(
            slot=slot,
            configuration=update.configuration,
            extended_properties=dict(update.extended_properties),
            extension_configuration=copy.deepcopy(update.extension_configuration),
            role_list=list(current.role_list),
        )
        self.updates.append((service_name, slot, update))
        self._log.debug(f"updated deployment of '{service_name}' in slot '{slot}'")
