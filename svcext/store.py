# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from typing import Dict, Iterable, List, Optional

from svcext.channel import ManagementChannel
from svcext.schema import ExtensionKind, ExtensionRecord
from svcext.util.logger import Logger, get_logger


class ExtensionStore:
    """
    Extension records of a cloud service. Nothing is cached, each call goes
    to the channel, so a multi-step change always sees the current state.
    """

    def __init__(
        self,
        channel: ManagementChannel,
        service_name: str,
        log: Optional[Logger] = None,
    ) -> None:
        if not service_name:
            raise ValueError("service name cannot be empty")
        self._channel = channel
        self.service_name = service_name
        self._log = log if log else get_logger("store", service_name)

    def list(self) -> List[ExtensionRecord]:
        return self._channel.list_extension_records(self.service_name)

    def get(self, extension_id: str) -> Optional[ExtensionRecord]:
        for record in self.list():
            if record.id == extension_id:
                return record
        return None

    def get_many(self, extension_ids: Iterable[str]) -> Dict[str, ExtensionRecord]:
        """
        Look up multiple ids with one listing. Missing ids are not in the
        result.
        """
        wanted = set(extension_ids)
        if not wanted:
            return {}
        return {x.id: x for x in self.list() if x.id in wanted}

    def add(self, record: ExtensionRecord) -> None:
        self._log.debug(f"adding extension '{record.id}' ({record.kind})")
        self._channel.add_extension_record(self.service_name, record)

    def delete(self, extension_id: str) -> None:
        self._log.debug(f"deleting extension '{extension_id}'")
        self._channel.delete_extension_record(self.service_name, extension_id)

    def is_kind(self, extension_id: str, kind: ExtensionKind) -> bool:
        if not extension_id:
            return False
        return kind.matches(self.get(extension_id))
