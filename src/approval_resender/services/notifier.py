"""
Notifier.

Renders the HTML email templates and sends the composed message
through Gmail. Every interpolated value is HTML-escaped by Jinja2
autoescaping, so spreadsheet content cannot inject markup.
"""

import base64
from email.message import EmailMessage
from email.utils import formataddr
from typing import Any, Optional, Sequence

from jinja2 import Environment, PackageLoader, select_autoescape

from approval_resender.core.exceptions import RecipientNotFoundError
from approval_resender.infrastructure.http import GmailClient
from approval_resender.infrastructure.logging import get_logger
from approval_resender.infrastructure.metrics import get_metrics
from approval_resender.services.attachments import Attachment


logger = get_logger(__name__)


class Template:
    """Template file names."""
    RAB_APPROVAL_REQUEST = "rab_approval_request.html"
    RAB_FINAL_TEAM = "rab_final_team.html"
    RAB_FINAL_SUBMITTER = "rab_final_submitter.html"
    SPK_APPROVAL_REQUEST = "spk_approval_request.html"
    SPK_FINAL_TEAM = "spk_final_team.html"
    SPK_FINAL_SUBMITTER = "spk_final_submitter.html"
    SPK_REJECTION = "spk_rejection.html"


class TemplateRenderer:
    """
    Jinja2 renderer over the packaged email templates.

    Autoescaping covers ``& < > " '`` in every interpolated value.
    """

    def __init__(self, environment: Optional[Environment] = None) -> None:
        self._env = environment or Environment(
            loader=PackageLoader("approval_resender", "templates"),
            autoescape=select_autoescape(["html"]),
            trim_blocks=True,
            lstrip_blocks=True,
        )

    def render(self, template_name: str, **context: Any) -> str:
        return self._env.get_template(template_name).render(**context)


def compose_message(
    sender: str,
    recipients: Sequence[str],
    subject: str,
    html_body: str,
    attachments: Sequence[Attachment] = (),
    sender_name: Optional[str] = None,
) -> EmailMessage:
    """
    Build the MIME message.

    Recipients share a single ``To`` header joined with ``", "``.
    Without a sender address the From header is left for Gmail to fill.
    """
    message = EmailMessage()
    if sender:
        message["From"] = formataddr((sender_name, sender)) if sender_name else sender
    message["To"] = ", ".join(recipients)
    message["Subject"] = subject
    message.set_content(html_body, subtype="html")

    for attachment in attachments:
        maintype, _, subtype = attachment.mime_type.partition("/")
        message.add_attachment(
            attachment.content,
            maintype=maintype,
            subtype=subtype or "octet-stream",
            filename=attachment.filename,
        )

    return message


def encode_message(message: EmailMessage) -> str:
    """URL-safe base64 of the RFC 822 bytes, padding stripped."""
    return base64.urlsafe_b64encode(message.as_bytes()).rstrip(b"=").decode("ascii")


class Notifier:
    """Renders and sends one email per call; failures propagate."""

    def __init__(
        self,
        gmail_client: GmailClient,
        sender_email: str,
        sender_name: Optional[str] = None,
        renderer: Optional[TemplateRenderer] = None,
    ) -> None:
        self._gmail = gmail_client
        self._sender_email = sender_email
        self._sender_name = sender_name
        self._renderer = renderer or TemplateRenderer()

    def render(self, template_name: str, **context: Any) -> str:
        return self._renderer.render(template_name, **context)

    def send(
        self,
        recipients: Sequence[str],
        subject: str,
        template_name: str,
        context: dict,
        attachments: Sequence[Attachment] = (),
    ) -> str:
        """
        Render template_name and send it to recipients.

        Returns:
            Gmail message id.

        Raises:
            RecipientNotFoundError: If recipients is empty.
            GmailError: If Gmail rejects the send.
        """
        if not recipients:
            raise RecipientNotFoundError("Tidak ada penerima email.")

        html_body = self.render(template_name, **context)
        message = compose_message(
            self._sender_email,
            recipients,
            subject,
            html_body,
            attachments,
            sender_name=self._sender_name,
        )

        logger.info(
            f"Sending {template_name} to {len(recipients)} recipient(s)",
            extra={"extra_fields": {
                "template": template_name,
                "recipients": list(recipients),
                "attachments": [a.filename for a in attachments],
            }}
        )

        message_id = self._gmail.send_raw(encode_message(message))
        get_metrics().emails_sent_total.inc(template=template_name)
        return message_id
