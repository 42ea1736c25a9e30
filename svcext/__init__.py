# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

from __future__ import annotations

from svcext.allocator import Allocation, ExtensionIdAllocator
from svcext.builder import ExtensionConfigurationBuilder
from svcext.channel import InMemoryChannel, ManagementChannel
from svcext.installer import ExtensionInstaller
from svcext.manager import ServiceExtensionManager
from svcext.schema import (
    DeploymentSnapshot,
    DeploymentUpdate,
    ExtensionConfiguration,
    ExtensionContext,
    ExtensionInput,
    ExtensionKind,
    ExtensionRecord,
    ExtensionReference,
    ExtensionRoleType,
    ExtensionSettings,
    RoleExtensions,
    RoleScope,
)
from svcext.settings import load_settings
from svcext.store import ExtensionStore
from svcext.util import (
    DuplicateIdError,
    NotFoundError,
    PoolExhaustedError,
    ServiceExtensionException,
    SettingsException,
    TypeConflictError,
    constants,
)
from svcext.util.logger import Logger, get_logger, init_logger

__all__ = [
    "Allocation",
    "DeploymentSnapshot",
    "DeploymentUpdate",
    "DuplicateIdError",
    "ExtensionConfiguration",
    "ExtensionConfigurationBuilder",
    "ExtensionContext",
    "ExtensionIdAllocator",
    "ExtensionInput",
    "ExtensionInstaller",
    "ExtensionKind",
    "ExtensionRecord",
    "ExtensionReference",
    "ExtensionRoleType",
    "ExtensionSettings",
    "ExtensionStore",
    "InMemoryChannel",
    "Logger",
    "ManagementChannel",
    "NotFoundError",
    "PoolExhaustedError",
    "RoleExtensions",
    "RoleScope",
    "ServiceExtensionException",
    "ServiceExtensionManager",
    "SettingsException",
    "TypeConflictError",
    "constants",
    "get_logger",
    "load_settings",
]


init_logger()
