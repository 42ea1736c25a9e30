# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from dataclasses import dataclass
from typing import List, Optional

from svcext.builder import ExtensionConfigurationBuilder
from svcext.schema import ExtensionKind, ExtensionRecord, ExtensionSettings, RoleScope
from svcext.store import ExtensionStore
from svcext.util import PoolExhaustedError, TypeConflictError
from svcext.util.logger import Logger, get_logger


@dataclass(frozen=True)
class Allocation:
    id: str
    thumbprint: str = ""
    thumbprint_algorithm: str = ""
    # a record, which uses the same id but isn't referenced by the
    # configuration. It must be deleted before adding the new one.
    stale_record: Optional[ExtensionRecord] = None


class ExtensionIdAllocator:
    """
    Extensions cannot be updated in place. To replace an extension, a new
    one is added under another id, and the old id is released from the
    configuration. Ids of a scope and type rotate in a small pool, so an id
    is reused after it's released.
    """

    def __init__(
        self,
        store: ExtensionStore,
        settings: Optional[ExtensionSettings] = None,
        log: Optional[Logger] = None,
    ) -> None:
        self._store = store
        self._settings = settings if settings else ExtensionSettings()
        self._log = log if log else get_logger("allocator", store.service_name)

    def candidate_ids(self, scope: RoleScope, type_: str, slot: str) -> List[str]:
        return [
            self._settings.format_id(scope, type_, slot, index)
            for index in range(self._settings.pool_size)
        ]

    def allocate(
        self,
        builder: ExtensionConfigurationBuilder,
        scope: RoleScope,
        kind: ExtensionKind,
        slot: str,
        thumbprint: str = "",
        thumbprint_algorithm: str = "",
    ) -> Allocation:
        candidates = self.candidate_ids(scope, kind.type, slot)
        available_id = next((x for x in candidates if not builder.exist_any(x)), None)
        if available_id is None:
            raise PoolExhaustedError(candidates)

        existing = self._store.get_many(candidates)
        existing_records = [
            existing[x] for x in candidates if kind.matches(existing.get(x))
        ]

        recovered: Optional[ExtensionRecord] = None
        stale_record = existing.get(available_id)
        if stale_record:
            if stale_record.kind != kind:
                raise TypeConflictError(
                    available_id, str(stale_record.kind), str(kind)
                )
            recovered = stale_record
        elif existing_records:
            # keep using the certificate of the previous extension, so it
            # doesn't need to be uploaded again.
            recovered = existing_records[0]

        if recovered:
            self._log.debug(
                f"recovered thumbprint of '{recovered.id}' for '{available_id}'"
            )
        allocation = Allocation(
            id=available_id,
            thumbprint=thumbprint or (recovered.thumbprint if recovered else ""),
            thumbprint_algorithm=thumbprint_algorithm
            or (recovered.thumbprint_algorithm if recovered else ""),
            stale_record=stale_record,
        )
        self._log.debug(
            f"allocated '{allocation.id}' for {kind} on {scope}, "
            f"stale record: {stale_record is not None}"
        )
        return allocation
