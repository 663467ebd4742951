"""
API Request Validation.

Uses Pydantic for request payload validation.
"""

from typing import Any

from pydantic import BaseModel, Field, field_validator


MISSING_KEY_MESSAGE = "Ulok dan Lingkup Pekerjaan harus diisi."


class ResendEmailRequest(BaseModel):
    """Request body for /api/resend-email and /api/resend-email-spk."""

    ulok: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Nomor Ulok of the submission",
    )
    lingkup: str = Field(
        ...,
        min_length=1,
        max_length=255,
        description="Lingkup Pekerjaan (work scope) of the submission",
    )

    @field_validator("ulok", "lingkup", mode="before")
    @classmethod
    def coerce_text(cls, v: Any) -> Any:
        """Accept numbers typed into the form and trim whitespace."""
        if isinstance(v, (int, float)) and not isinstance(v, bool):
            v = str(v)
        if isinstance(v, str):
            v = v.strip()
        return v
