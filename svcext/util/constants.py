# Copyright (c) Microsoft Corporation.
# Licensed under the MIT license.

# deployment slots
DEPLOYMENT_SLOT_PRODUCTION = "Production"
DEPLOYMENT_SLOT_STAGING = "Staging"
DEPLOYMENT_SLOTS = [DEPLOYMENT_SLOT_PRODUCTION, DEPLOYMENT_SLOT_STAGING]

# change configuration modes
CHANGE_MODE_AUTO = "Auto"
CHANGE_MODE_MANUAL = "Manual"

# extension ids
EXTENSION_ID_POOL_SIZE = 2
EXTENSION_ID_TEMPLATE = "{scope}-{type}-{slot}-Ext-{index}"
EXTENSION_ID_INDEX_KEY = "{index}"
DEFAULT_ROLE_LABEL = "Default"

# settings file
SETTINGS_ROOT_KEY = "extension"

# extension families
EXTENSION_NAMESPACE_WINDOWS_AZURE = "Microsoft.Windows.Azure.Extensions"
EXTENSION_TYPE_RDP = "RDP"
EXTENSION_NAMESPACE_DIAGNOSTICS = "Microsoft.Azure.Diagnostics"
EXTENSION_TYPE_DIAGNOSTICS = "PaaSDiagnostics"

# xml elements of extension payloads
PUBLIC_CONFIG = "PublicConfig"
PRIVATE_CONFIG = "PrivateConfig"
DIAGNOSTICS_CONFIG_NAMESPACE = (
    "http://schemas.microsoft.com/ServiceHosting/2010/10/DiagnosticsConfiguration"
)

# remote desktop user expires after this many months by default
RDP_EXPIRATION_MONTHS = 6
RDP_EXPIRATION_FORMAT = "%Y-%m-%d"

# remote desktop configured by role settings, before the extension existed
LEGACY_REMOTE_ACCESS_SETTING = "Microsoft.WindowsAzure.Plugins.RemoteAccess.Enabled"
