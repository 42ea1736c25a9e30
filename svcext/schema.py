# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Schema is dealt with three components,
1. dataclasses. It's a builtin class, uses to define the data model of
   extension records, configurations and deployments.
2. dataclasses_json. Serializer. config() function names fields as the
   service management API does, like "AllRoles" or "ProviderNameSpace".
3. marshmallow. Validator. It's wrapped by dataclasses_json. It validates
   settings when they are loaded from a file.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set, Type, TypeVar

from dataclasses_json import dataclass_json
from marshmallow import fields, validate

from svcext.util import (
    SettingsException,
    constants,
    field_metadata,
    unique,
    wire_name,
)

T = TypeVar("T")


@dataclass(frozen=True)
class ExtensionKind:
    """
    The family of an extension, like RDP or diagnostics. Two kinds are the
    same, when both namespace and type are the same.
    """

    namespace: str
    type: str

    def matches(self, record: Optional["ExtensionRecord"]) -> bool:
        return record is not None and record.kind == self

    def __str__(self) -> str:
        return f"{self.namespace}.{self.type}"


@dataclass_json()
@dataclass(frozen=True)
class ExtensionRecord:
    id: str = field(metadata=wire_name("Id"))
    namespace: str = field(default="", metadata=wire_name("ProviderNameSpace"))
    type: str = field(default="", metadata=wire_name("Type"))
    thumbprint: str = field(default="", metadata=wire_name("Thumbprint"))
    thumbprint_algorithm: str = field(
        default="", metadata=wire_name("ThumbprintAlgorithm")
    )
    public_configuration: str = field(
        default="", metadata=wire_name("PublicConfiguration")
    )
    private_configuration: str = field(
        default="", metadata=wire_name("PrivateConfiguration"), repr=False
    )

    @property
    def kind(self) -> ExtensionKind:
        return ExtensionKind(namespace=self.namespace, type=self.type)


class ExtensionRoleType(str, Enum):
    AllRoles = "AllRoles"
    NamedRoles = "NamedRoles"


@dataclass(frozen=True)
class RoleScope:
    role_type: ExtensionRoleType = ExtensionRoleType.AllRoles
    role_name: str = ""

    def __post_init__(self) -> None:
        if self.role_type == ExtensionRoleType.NamedRoles and not self.role_name:
            raise ValueError("a named role scope needs a role name")

    @classmethod
    def default(cls) -> "RoleScope":
        return cls()

    @classmethod
    def named(cls, role_name: str) -> "RoleScope":
        return cls(role_type=ExtensionRoleType.NamedRoles, role_name=role_name)

    @property
    def is_default(self) -> bool:
        return self.role_type == ExtensionRoleType.AllRoles

    def __str__(self) -> str:
        return "all roles" if self.is_default else f"role '{self.role_name}'"


@dataclass_json()
@dataclass
class ExtensionReference:
    id: str = field(metadata=wire_name("Id"))


@dataclass_json()
@dataclass
class RoleExtensions:
    role_name: str = field(metadata=wire_name("RoleName"))
    extensions: List[ExtensionReference] = field(
        default_factory=list, metadata=wire_name("Extensions")
    )

    @property
    def ids(self) -> List[str]:
        return [x.id for x in self.extensions]


@dataclass_json()
@dataclass
class ExtensionConfiguration:
    all_roles: List[ExtensionReference] = field(
        default_factory=list, metadata=wire_name("AllRoles")
    )
    named_roles: List[RoleExtensions] = field(
        default_factory=list, metadata=wire_name("NamedRoles")
    )

    @property
    def default_ids(self) -> List[str]:
        return [x.id for x in self.all_roles]

    def get_role(self, role_name: str) -> Optional[RoleExtensions]:
        for role in self.named_roles:
            if role.role_name == role_name:
                return role
        return None

    def all_ids(self) -> Set[str]:
        ids = set(self.default_ids)
        for role in self.named_roles:
            ids.update(role.ids)
        return ids

    def memberships(self) -> Dict[str, Set[str]]:
        """
        The ids of each scope. The default scope uses an empty key. Roles
        without any id are skipped, so that they don't impact comparing.
        """
        result: Dict[str, Set[str]] = {"": set(self.default_ids)}
        for role in self.named_roles:
            if role.extensions:
                result.setdefault(role.role_name, set()).update(role.ids)
        return result

    def is_equivalent(self, other: "ExtensionConfiguration") -> bool:
        return self.memberships() == other.memberships()


@dataclass(frozen=True)
class DeploymentSnapshot:
    """
    The state of a deployment when it's fetched. It's read only. Changes are
    sent by a new DeploymentUpdate.
    """

    slot: str
    configuration: str = ""
    extended_properties: Dict[str, str] = field(default_factory=dict)
    extension_configuration: ExtensionConfiguration = field(
        default_factory=ExtensionConfiguration
    )
    role_list: List[str] = field(default_factory=list)


@dataclass_json()
@dataclass(frozen=True)
class DeploymentUpdate:
    configuration: str = field(default="", metadata=wire_name("Configuration"))
    extended_properties: Dict[str, str] = field(
        default_factory=dict, metadata=wire_name("ExtendedProperties")
    )
    extension_configuration: ExtensionConfiguration = field(
        default_factory=ExtensionConfiguration,
        metadata=wire_name("ExtensionConfiguration"),
    )
    mode: str = field(default=constants.CHANGE_MODE_AUTO, metadata=wire_name("Mode"))
    treat_warnings_as_error: bool = field(
        default=False, metadata=wire_name("TreatWarningsAsError")
    )


@dataclass
class ExtensionInput:
    """
    The extension to install. If all_roles is set, or there is no named
    role, it's installed to the default scope. Each named role gets its own
    extension.
    """

    namespace: str
    type: str
    public_configuration: str = ""
    private_configuration: str = field(default="", repr=False)
    thumbprint: str = ""
    thumbprint_algorithm: str = ""
    all_roles: bool = False
    named_roles: List[str] = field(default_factory=list)

    @property
    def kind(self) -> ExtensionKind:
        return ExtensionKind(namespace=self.namespace, type=self.type)

    @property
    def role_scopes(self) -> List[RoleScope]:
        scopes: List[RoleScope] = []
        if self.all_roles or not self.named_roles:
            scopes.append(RoleScope.default())
        scopes.extend(RoleScope.named(x) for x in unique(self.named_roles))
        return scopes

    def to_record(
        self, extension_id: str, thumbprint: str, thumbprint_algorithm: str
    ) -> ExtensionRecord:
        return ExtensionRecord(
            id=extension_id,
            namespace=self.namespace,
            type=self.type,
            thumbprint=thumbprint,
            thumbprint_algorithm=thumbprint_algorithm,
            public_configuration=self.public_configuration,
            private_configuration=self.private_configuration,
        )


@dataclass(frozen=True)
class ExtensionContext:
    """
    An extension, which is active on a scope of a deployment.
    """

    slot: str
    scope: RoleScope
    record: ExtensionRecord

    @property
    def id(self) -> str:
        return self.record.id

    @property
    def kind(self) -> ExtensionKind:
        return self.record.kind


@dataclass_json()
@dataclass
class ExtensionSettings:
    # how many ids rotate for one type in one scope. An extension cannot be
    # updated in place, so a new one is added under another id.
    pool_size: int = field(
        default=constants.EXTENSION_ID_POOL_SIZE,
        metadata=field_metadata(
            field_function=fields.Int, validate=validate.Range(min=1)
        ),
    )
    id_template: str = field(
        default=constants.EXTENSION_ID_TEMPLATE,
        metadata=field_metadata(validate=validate.Length(min=1)),
    )
    default_role_label: str = field(
        default=constants.DEFAULT_ROLE_LABEL,
        metadata=field_metadata(validate=validate.Length(min=1)),
    )
    default_slot: str = field(
        default=constants.DEPLOYMENT_SLOT_PRODUCTION,
        metadata=field_metadata(validate=validate.OneOf(constants.DEPLOYMENT_SLOTS)),
    )
    change_mode: str = field(
        default=constants.CHANGE_MODE_AUTO,
        metadata=field_metadata(
            validate=validate.OneOf(
                [constants.CHANGE_MODE_AUTO, constants.CHANGE_MODE_MANUAL]
            )
        ),
    )
    treat_warnings_as_error: bool = False

    def __post_init__(self, *args: Any, **kwargs: Any) -> None:
        if constants.EXTENSION_ID_INDEX_KEY not in self.id_template:
            raise SettingsException(
                f"id template '{self.id_template}' must contain "
                f"'{constants.EXTENSION_ID_INDEX_KEY}', otherwise ids cannot rotate."
            )
        if self.pool_size < 1:
            raise SettingsException(
                f"pool size must be at least 1, but it's {self.pool_size}"
            )

    def format_id(self, scope: RoleScope, type_: str, slot: str, index: int) -> str:
        label = self.default_role_label if scope.is_default else scope.role_name
        return self.id_template.format(scope=label, type=type_, slot=slot, index=index)


def load_by_type(schema_type: Type[T], raw_data: Any, many: bool = False) -> T:
    """
    Convert dict, list or base typed schema to specified typed schema.
    """
    if type(raw_data) == schema_type:
        return raw_data

    if not isinstance(raw_data, (dict, list)):
        raw_data = raw_data.to_dict()

    result: T = schema_type.schema().load(raw_data, many=many)  # type: ignore
    return result
