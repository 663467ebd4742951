"""
Application configuration.

Centralizes environment variables, constants, and settings
using dataclasses for type safety and immutability.
"""

import os
from dataclasses import dataclass, field
from typing import Tuple

from dotenv import load_dotenv


load_dotenv()


def env_value(name: str, default: str = "") -> str:
    """
    Read an environment variable, unwrapping common paste mistakes.

    Hosting dashboards regularly end up with values like ``"abc"`` or
    ``NAME=abc``; both are reduced to ``abc``.

    Args:
        name: Environment variable name.
        default: Value returned when the variable is unset or blank.

    Returns:
        The cleaned value.
    """
    raw = os.environ.get(name)
    if not raw:
        return default

    value = str(raw).strip()

    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        value = value[1:-1].strip()

    prefix = f"{name}="
    if value.startswith(prefix):
        value = value[len(prefix):].strip()

    return value or default


@dataclass(frozen=True)
class CredentialSettings:
    """One delegated OAuth credential set."""

    label: str
    token_file: str
    env_client_id: str
    env_client_secret: str
    env_refresh_token: str
    token_uri: str = "https://oauth2.googleapis.com/token"


def _doc_credentials() -> CredentialSettings:
    return CredentialSettings(
        label="doc",
        token_file=env_value("DOC_TOKEN_FILE", "token_doc.json"),
        env_client_id="DOC_GOOGLE_CLIENT_ID",
        env_client_secret="DOC_GOOGLE_CLIENT_SECRET",
        env_refresh_token="DOC_GOOGLE_REFRESH_TOKEN",
    )


def _sparta_credentials() -> CredentialSettings:
    return CredentialSettings(
        label="sparta",
        token_file=env_value("SPARTA_TOKEN_FILE", "token.json"),
        env_client_id="GOOGLE_CLIENT_ID",
        env_client_secret="GOOGLE_CLIENT_SECRET",
        env_refresh_token="GOOGLE_REFRESH_TOKEN",
    )


@dataclass(frozen=True)
class CredentialRoutingSettings:
    """Which credential set talks to which Google API."""

    sheets: str = field(
        default_factory=lambda: env_value("SHEETS_CREDENTIAL", "doc")
    )
    gmail: str = field(
        default_factory=lambda: env_value("GMAIL_CREDENTIAL", "sparta")
    )
    # Tried in order for every attachment download
    drive: Tuple[str, ...] = field(
        default_factory=lambda: tuple(
            label.strip()
            for label in env_value("DRIVE_CREDENTIALS", "doc,sparta").split(",")
            if label.strip()
        )
    )


@dataclass(frozen=True)
class SheetSettings:
    """Google Sheets locations."""

    spreadsheet_id: str = field(
        default_factory=lambda: env_value("DOC_SHEET_ID")
    )
    spk_spreadsheet_id: str = field(
        default_factory=lambda: env_value("SPK_SHEET_ID") or env_value("DOC_SHEET_ID")
    )
    form_range: str = field(
        default_factory=lambda: env_value("FORM_RANGE", "form2!A:AA")
    )
    directory_range: str = field(
        default_factory=lambda: env_value("DIRECTORY_RANGE", "Cabang!A:Z")
    )
    spk_range: str = field(
        default_factory=lambda: env_value("SPK_RANGE", "SPK_Data!A:AZ")
    )
    timeout_seconds: int = 30


@dataclass(frozen=True)
class DriveSettings:
    """Google Drive download settings."""

    timeout_seconds: int = 60


@dataclass(frozen=True)
class MailSettings:
    """Gmail sender settings."""

    sender_email: str = field(
        default_factory=lambda: env_value("EMAIL_USER")
    )
    sender_name: str = field(
        default_factory=lambda: env_value("EMAIL_SENDER_NAME", "Sparta System")
    )
    timeout_seconds: int = 60


@dataclass(frozen=True)
class LinkSettings:
    """Outbound URLs embedded in emails."""

    backend_base_url: str = field(
        default_factory=lambda: env_value(
            "SPARTA_BACKEND_BASE_URL", "https://sparta-backend-5hdj.onrender.com"
        ).rstrip("/")
    )
    materai_upload_url: str = field(
        default_factory=lambda: env_value(
            "MATERAI_UPLOAD_URL", "https://materai-rab-pi.vercel.app/login"
        )
    )
    spk_form_url: str = field(
        default_factory=lambda: env_value(
            "SPK_FORM_URL", "https://sparta-alfamart.vercel.app"
        )
    )


@dataclass(frozen=True)
class Settings:
    """Main application settings."""

    credentials: Tuple[CredentialSettings, ...] = field(
        default_factory=lambda: (_doc_credentials(), _sparta_credentials())
    )
    routing: CredentialRoutingSettings = field(default_factory=CredentialRoutingSettings)
    sheets: SheetSettings = field(default_factory=SheetSettings)
    drive: DriveSettings = field(default_factory=DriveSettings)
    mail: MailSettings = field(default_factory=MailSettings)
    links: LinkSettings = field(default_factory=LinkSettings)
    cors_origins: Tuple[str, ...] = field(
        default_factory=lambda: tuple(
            origin.strip()
            for origin in env_value("CORS_ORIGINS", "*").split(",")
            if origin.strip()
        )
    )
    port: int = field(default_factory=lambda: int(env_value("PORT", "3000")))
    debug: bool = field(default_factory=lambda: env_value("DEBUG", "false").lower() == "true")
    environment: str = field(default_factory=lambda: env_value("ENVIRONMENT", "development"))
    log_level: str = field(default_factory=lambda: env_value("LOG_LEVEL", "INFO").upper())


# Singleton settings instance
settings = Settings()
