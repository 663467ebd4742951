"""
Attachment Fetcher.

Downloads the PDFs referenced by a sheet row. Each file is tried
against an ordered list of credential-bound sources; the first
success wins and a file no source can read is simply left out.
"""

from dataclasses import dataclass
from typing import List, Optional, Protocol, Sequence

from approval_resender.core.exceptions import ExternalServiceError
from approval_resender.core.normalization import extract_file_id
from approval_resender.infrastructure.logging import get_logger
from approval_resender.infrastructure.metrics import get_metrics


logger = get_logger(__name__)


class AttachmentSource(Protocol):
    """Anything that can probe and download a Drive file (see DriveClient)."""

    @property
    def label(self) -> str: ...

    def get_metadata(self, file_id: str) -> dict: ...

    def download(self, file_id: str) -> bytes: ...


@dataclass(frozen=True)
class AttachmentLink:
    """A stored link and the filename it is attached under."""
    filename: str
    url: str


@dataclass(frozen=True)
class Attachment:
    """A downloaded file ready to attach."""
    filename: str
    content: bytes
    mime_type: str = "application/pdf"


class AttachmentFetcher:
    """Downloads attachments, tolerating per-file failure."""

    def __init__(self, sources: Sequence[AttachmentSource]) -> None:
        self._sources = list(sources)

    @property
    def source_labels(self) -> List[str]:
        return [source.label for source in self._sources]

    def download(self, file_id: str) -> Optional[bytes]:
        """
        Download one file, trying each source in order.

        Returns:
            File bytes, or None when every source failed.
        """
        metrics = get_metrics()

        for source in self._sources:
            try:
                source.get_metadata(file_id)
                content = source.download(file_id)
            # ValueError: metadata body that is not JSON
            except (ExternalServiceError, ValueError) as e:
                metrics.attachment_downloads_total.inc(source=source.label, status="failed")
                logger.warning(
                    f"Drive download failed via {source.label} for ID {file_id}: {e}",
                    extra={"extra_fields": {
                        "file_id": file_id,
                        "source": source.label,
                        "status_code": getattr(e, "status_code", None),
                    }}
                )
                continue

            metrics.attachment_downloads_total.inc(source=source.label, status="success")
            logger.info(
                f"Downloaded Drive file {file_id} via {source.label}",
                extra={"extra_fields": {
                    "file_id": file_id,
                    "source": source.label,
                    "size_bytes": len(content),
                }}
            )
            return content

        logger.error(
            f"Drive file {file_id} could not be downloaded with any credential",
            extra={"extra_fields": {"file_id": file_id, "sources": self.source_labels}}
        )
        return None

    def fetch_all(self, links: Sequence[AttachmentLink]) -> List[Attachment]:
        """
        Download every resolvable link.

        Empty or unrecognised links are skipped without logging an error.
        """
        attachments = []
        for link in links:
            file_id = extract_file_id(link.url)
            if not file_id:
                continue
            content = self.download(file_id)
            if content is not None:
                attachments.append(Attachment(filename=link.filename, content=content))
        return attachments
