"""
Services Layer.

Business logic orchestration:
- RAB and SPK resend flows
- Attachment download with credential fallback
- Email rendering and sending
- OAuth diagnostics
"""

from approval_resender.services.attachments import (
    Attachment,
    AttachmentFetcher,
    AttachmentLink,
)
from approval_resender.services.container import ServiceContainer
from approval_resender.services.diagnostics import OAuthDiagnosticsService
from approval_resender.services.notifier import Notifier, Template, TemplateRenderer
from approval_resender.services.resend import (
    RabResendService,
    ResendResult,
    SpkResendService,
)


__all__ = [
    "Attachment",
    "AttachmentFetcher",
    "AttachmentLink",
    "Notifier",
    "OAuthDiagnosticsService",
    "RabResendService",
    "ResendResult",
    "ServiceContainer",
    "SpkResendService",
    "Template",
    "TemplateRenderer",
]
