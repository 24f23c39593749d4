from securevault.models.activity import ActivityLog, ExportLog
from securevault.models.client import Client
from securevault.models.credential import Credential, CredentialField
from securevault.models.platform import Platform, PlatformCategory

__all__ = [
    "ActivityLog",
    "Client",
    "Credential",
    "CredentialField",
    "ExportLog",
    "Platform",
    "PlatformCategory",
]
