"""Configuration package."""

from approval_resender.config.settings import (
    CredentialRoutingSettings,
    CredentialSettings,
    DriveSettings,
    LinkSettings,
    MailSettings,
    Settings,
    SheetSettings,
    env_value,
    settings,
)

__all__ = [
    "CredentialRoutingSettings",
    "CredentialSettings",
    "DriveSettings",
    "LinkSettings",
    "MailSettings",
    "Settings",
    "SheetSettings",
    "env_value",
    "settings",
]
