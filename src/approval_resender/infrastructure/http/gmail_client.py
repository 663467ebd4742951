"""
Gmail API Client.

Sends pre-encoded MIME messages as the authorized user.
"""

from approval_resender.core.exceptions import GmailError
from approval_resender.infrastructure.http.google_client import GoogleApiClient
from approval_resender.infrastructure.logging import get_logger, log_duration


logger = get_logger(__name__)


GMAIL_SEND_URL = "https://gmail.googleapis.com/gmail/v1/users/me/messages/send"


class GmailClient(GoogleApiClient):
    """Client for users.messages.send."""

    service_name = "gmail"
    error_class = GmailError

    @log_duration("gmail_send")
    def send_raw(self, raw: str) -> str:
        """
        Send a message.

        Args:
            raw: RFC 822 message, URL-safe base64 without padding.

        Returns:
            Gmail message id.

        Raises:
            GmailError: If the send fails or no id comes back.
        """
        response = self._request("POST", GMAIL_SEND_URL, json={"raw": raw})
        message_id = response.json().get("id")

        if not message_id:
            raise GmailError("send succeeded without a message id")

        logger.info(
            f"Email sent via Gmail API. ID: {message_id}",
            extra={"extra_fields": {"message_id": message_id, "credential": self.label}}
        )
        return message_id
