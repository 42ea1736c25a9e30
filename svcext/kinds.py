# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

"""
Well known extension families, and builders of their configuration
payloads. Payloads are xml documents. The public one is readable by anyone,
who can read the deployment. The private one is encrypted by the service
with the certificate of the thumbprint.
"""

import xml.etree.ElementTree as ET  # noqa: N817
from datetime import datetime
from typing import Iterable, Optional

from dateutil.relativedelta import relativedelta

from svcext.schema import ExtensionInput, ExtensionKind, ExtensionRecord
from svcext.secret import PATTERN_HEADTAIL, add_secret
from svcext.util import ServiceExtensionException, constants

REMOTE_DESKTOP = ExtensionKind(
    namespace=constants.EXTENSION_NAMESPACE_WINDOWS_AZURE,
    type=constants.EXTENSION_TYPE_RDP,
)
DIAGNOSTICS = ExtensionKind(
    namespace=constants.EXTENSION_NAMESPACE_DIAGNOSTICS,
    type=constants.EXTENSION_TYPE_DIAGNOSTICS,
)

XML_DECLARATION = '<?xml version="1.0" encoding="utf-8"?>'
DEFAULT_THUMBPRINT_ALGORITHM = "sha1"


def remote_desktop_extension(
    user_name: str,
    password: str,
    expiration: Optional[datetime] = None,
    thumbprint: str = "",
    thumbprint_algorithm: str = "",
    all_roles: bool = False,
    named_roles: Optional[Iterable[str]] = None,
) -> ExtensionInput:
    if not user_name:
        raise ValueError("remote desktop user name cannot be empty")
    if not password:
        raise ValueError("remote desktop password cannot be empty")
    add_secret(password, PATTERN_HEADTAIL)

    if expiration is None:
        expiration = datetime.now() + relativedelta(
            months=constants.RDP_EXPIRATION_MONTHS
        )
    if thumbprint and not thumbprint_algorithm:
        thumbprint_algorithm = DEFAULT_THUMBPRINT_ALGORITHM

    public = ET.Element(constants.PUBLIC_CONFIG)
    ET.SubElement(public, "UserName").text = user_name
    ET.SubElement(public, "Expiration").text = expiration.strftime(
        constants.RDP_EXPIRATION_FORMAT
    )
    private = ET.Element(constants.PRIVATE_CONFIG)
    ET.SubElement(private, "Password").text = password

    return ExtensionInput(
        namespace=REMOTE_DESKTOP.namespace,
        type=REMOTE_DESKTOP.type,
        public_configuration=_to_xml(public),
        private_configuration=_to_xml(private),
        thumbprint=thumbprint,
        thumbprint_algorithm=thumbprint_algorithm,
        all_roles=all_roles,
        named_roles=list(named_roles) if named_roles else [],
    )


def diagnostics_extension(
    storage_account_name: str,
    storage_key: str,
    endpoint: str = "",
    wad_configuration: str = "",
    thumbprint: str = "",
    thumbprint_algorithm: str = "",
    all_roles: bool = False,
    named_roles: Optional[Iterable[str]] = None,
) -> ExtensionInput:
    if not storage_account_name:
        raise ValueError("storage account name cannot be empty")
    add_secret(storage_key)

    public = ET.Element(
        constants.PUBLIC_CONFIG, xmlns=constants.DIAGNOSTICS_CONFIG_NAMESPACE
    )
    wad = ET.SubElement(public, "WadCfg")
    if wad_configuration:
        wad_root = ET.fromstring(wad_configuration.encode("utf-8"))
        if _local_name(wad_root.tag) == "WadCfg":
            wad.extend(list(wad_root))
        else:
            wad.append(wad_root)
    ET.SubElement(public, "StorageAccount").text = storage_account_name

    private = ET.Element(
        constants.PRIVATE_CONFIG, xmlns=constants.DIAGNOSTICS_CONFIG_NAMESPACE
    )
    ET.SubElement(
        private,
        "StorageAccount",
        name=storage_account_name,
        key=storage_key,
        endpoint=endpoint,
    )

    return ExtensionInput(
        namespace=DIAGNOSTICS.namespace,
        type=DIAGNOSTICS.type,
        public_configuration=_to_xml(public),
        private_configuration=_to_xml(private),
        thumbprint=thumbprint,
        thumbprint_algorithm=thumbprint_algorithm,
        all_roles=all_roles,
        named_roles=list(named_roles) if named_roles else [],
    )


def get_config_value(xml_text: str, element: str) -> Optional[str]:
    """
    Return the first element of the local name. If the element has children,
    it returns the xml of it, otherwise the text.
    """
    if not xml_text:
        return None
    root = ET.fromstring(xml_text.encode("utf-8"))
    for node in root.iter():
        if _local_name(node.tag) == element:
            if len(node):
                return ET.tostring(node, encoding="unicode")
            return node.text or ""
    return None


def get_public_config_value(
    record: Optional[ExtensionRecord], element: str
) -> Optional[str]:
    if record is None:
        return ""
    return get_config_value(record.public_configuration, element)


def exist_legacy_setting(configuration: str, setting_name: str) -> bool:
    """
    Check the service configuration of a deployment, if any role has the
    setting. Extensions conflict with features, which are enabled by role
    settings.
    """
    if not configuration:
        return False
    try:
        root = ET.fromstring(configuration.encode("utf-8"))
    except ET.ParseError as identifier:
        raise ServiceExtensionException(
            f"cannot determine legacy setting, configuration parsing error: "
            f"{identifier}"
        ) from identifier
    for node in root.iter():
        if _local_name(node.tag) != "ConfigurationSettings":
            continue
        for setting in node:
            if (
                _local_name(setting.tag) == "Setting"
                and setting.get("name") == setting_name
                and setting.get("value") is not None
            ):
                return True
    return False


def _to_xml(element: ET.Element) -> str:
    return XML_DECLARATION + ET.tostring(element, encoding="unicode")


def _local_name(tag: str) -> str:
    # namespaced tags look like {namespace}name
    return tag.rsplit("}", 1)[-1]
