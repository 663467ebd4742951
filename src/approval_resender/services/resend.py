"""
Resend Services.

Orchestrate one resend request: locate the row, route its status,
resolve recipients, download attachments and send the email(s).
"""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple
from urllib.parse import quote, urlencode

from approval_resender.config import LinkSettings
from approval_resender.core.exceptions import (
    MissingBranchError,
    RecipientNotFoundError,
    RecordNotFoundError,
)
from approval_resender.core.normalization import unique_emails
from approval_resender.core.routing import (
    ApprovalStage,
    JobTitle,
    RouteDecision,
    route_rab_status,
    route_spk_status,
)
from approval_resender.infrastructure.logging import get_logger
from approval_resender.infrastructure.metrics import get_metrics
from approval_resender.infrastructure.sheets import (
    ApprovalRecord,
    ApprovalRecordRepository,
    DirectoryEntry,
    DirectoryRepository,
    SpkRecord,
    SpkRecordRepository,
    emails_for,
    find_title_emails,
    split_submitter,
)
from approval_resender.services.attachments import (
    Attachment,
    AttachmentFetcher,
    AttachmentLink,
)
from approval_resender.services.notifier import Notifier, Template


logger = get_logger(__name__)


DEFAULT_REJECTION_REASON = "Tidak ada alasan yang diberikan."


@dataclass(frozen=True)
class ResendResult:
    """Outcome of a resend request."""
    message: str
    sent: bool
    status: str = ""
    role: Optional[str] = None
    recipients: List[str] = field(default_factory=list)
    message_ids: List[str] = field(default_factory=list)
    multi_send: bool = False
    reason: Optional[str] = None

    @classmethod
    def skipped(cls, status: str) -> "ResendResult":
        return cls(
            message=f'Email tidak dikirim. Status saat ini: "{status}"',
            sent=False,
            status=status,
        )

    def to_response(self) -> Dict[str, Any]:
        """JSON body returned by the resend endpoints."""
        if not self.sent:
            return {"message": self.message}

        body: Dict[str, Any] = {
            "message": self.message,
            "recipient": ", ".join(self.recipients),
            "role": self.role,
            "messageId": self.message_ids[0] if self.message_ids else None,
        }
        if self.multi_send:
            body["messageIds"] = list(self.message_ids)
        if self.reason is not None:
            body["reason"] = self.reason
        return body


def build_link(base_url: str, path: str, params: Sequence[Tuple[str, Any]]) -> str:
    """Absolute callback URL with percent-encoded query parameters."""
    return f"{base_url}{path}?{urlencode(list(params), quote_via=quote)}"


class ResendService:
    """Shared steps of the RAB and SPK flows."""

    flow = ""

    def __init__(
        self,
        directory: DirectoryRepository,
        fetcher: AttachmentFetcher,
        notifier: Notifier,
        links: LinkSettings,
    ) -> None:
        self._directory = directory
        self._fetcher = fetcher
        self._notifier = notifier
        self._links = links

    def _record_outcome(self, result: ResendResult) -> ResendResult:
        get_metrics().resend_requests_total.inc(
            flow=self.flow,
            outcome="sent" if result.sent else "skipped",
        )
        return result

    def _stage_recipients(
        self,
        entries: Sequence[DirectoryEntry],
        branch: str,
        title: str,
    ) -> List[str]:
        recipients = find_title_emails(entries, branch, title).unwrap(
            lambda reason: RecipientNotFoundError(reason, (title,), branch)
        )
        logger.info(
            f"Recipients found ({len(recipients)}): {', '.join(recipients)}",
            extra={"extra_fields": {"flow": self.flow, "title": title, "branch": branch}}
        )
        return recipients

    def _send_split(
        self,
        submitters: List[str],
        team: List[str],
        subject: str,
        submitter_template: str,
        team_template: str,
        context: Dict[str, Any],
        attachments: Sequence[Attachment],
    ) -> List[str]:
        """Submitter and team each get their own template; same subject and files."""
        message_ids = []
        if submitters:
            message_ids.append(self._notifier.send(
                submitters, subject, submitter_template, context, attachments,
            ))
        if team:
            message_ids.append(self._notifier.send(
                team, subject, team_template, context, attachments,
            ))
        return message_ids


class RabResendService(ResendService):
    """Resends RAB approval emails (form2 sheet)."""

    flow = "rab"

    FINAL_TEAM_TITLES = (JobTitle.COORDINATOR, JobTitle.MANAGER)

    def __init__(
        self,
        records: ApprovalRecordRepository,
        directory: DirectoryRepository,
        fetcher: AttachmentFetcher,
        notifier: Notifier,
        links: LinkSettings,
    ) -> None:
        super().__init__(directory, fetcher, notifier, links)
        self._records = records

    def resend(self, ulok: str, lingkup: str) -> ResendResult:
        """
        Resend whatever email the row's current status calls for.

        Raises:
            RecordNotFoundError: No row matches ulok + lingkup.
            MissingBranchError: The row has no branch.
            RecipientNotFoundError: Nobody to send to.
            ExternalServiceError: Sheets or Gmail failed.
        """
        logger.info(
            f"Processing Ulok: {ulok}, Lingkup: {lingkup}",
            extra={"extra_fields": {"flow": self.flow, "ulok": ulok, "lingkup": lingkup}}
        )

        record = self._records.find(ulok, lingkup).unwrap(
            lambda reason: RecordNotFoundError(reason, ulok, lingkup)
        )
        decision = route_rab_status(record.status)

        if not decision.should_send:
            return self._record_outcome(ResendResult.skipped(record.status))

        if not record.branch:
            raise MissingBranchError(record.row_number)

        entries = self._directory.entries()

        if decision.stage is ApprovalStage.FINAL:
            result = self._send_final(record, decision, entries)
        else:
            result = self._send_stage(record, decision, entries)
        return self._record_outcome(result)

    def attachment_links(self, record: ApprovalRecord) -> List[AttachmentLink]:
        return [
            AttachmentLink("RAB_SBO.pdf", record.link_pdf),
            AttachmentLink("RAB_NON_SBO.pdf", record.link_pdf_non_sbo),
            AttachmentLink("REKAP_RAB.pdf", record.link_pdf_rekap),
        ]

    def _send_stage(
        self,
        record: ApprovalRecord,
        decision: RouteDecision,
        entries: Sequence[DirectoryEntry],
    ) -> ResendResult:
        title = decision.target_title or ""
        recipients = self._stage_recipients(entries, record.branch, title)
        level = decision.stage.value
        approver = recipients[0]

        base = self._links.backend_base_url
        approval_url = build_link(base, "/api/handle_rab_approval", [
            ("action", "approve"),
            ("row", record.row_number),
            ("level", level),
            ("approver", approver),
        ])
        rejection_url = build_link(base, "/api/reject_form/rab", [
            ("row", record.row_number),
            ("level", level),
            ("approver", approver),
        ])

        additional_info = ""
        if decision.stage is ApprovalStage.MANAGER and record.coordinator_email:
            additional_info = f"Telah disetujui oleh Koordinator: {record.coordinator_email}"

        attachments = self._fetcher.fetch_all(self.attachment_links(record))

        tahap = 1 if decision.stage is ApprovalStage.COORDINATOR else 2
        subject = (
            f"[TAHAP {tahap}: PERLU PERSETUJUAN] RAB Proyek {record.project} - {record.scope}"
        )

        message_id = self._notifier.send(
            recipients,
            subject,
            Template.RAB_APPROVAL_REQUEST,
            {
                "level": decision.role,
                "project": record.project,
                "ulok": record.ulok,
                "approval_url": approval_url,
                "rejection_url": rejection_url,
                "additional_info": additional_info,
            },
            attachments,
        )

        return ResendResult(
            message="Email berhasil dikirim.",
            sent=True,
            status=record.status,
            role=decision.role,
            recipients=recipients,
            message_ids=[message_id],
        )

    def _send_final(
        self,
        record: ApprovalRecord,
        decision: RouteDecision,
        entries: Sequence[DirectoryEntry],
    ) -> ResendResult:
        submitters, team = split_submitter(
            record.creator_email,
            [record.coordinator_email, record.manager_email]
            + emails_for(entries, record.branch, self.FINAL_TEAM_TITLES),
        )
        if not submitters and not team:
            raise RecipientNotFoundError(
                f"Tidak ada penerima email untuk RAB yang disetujui di cabang {record.branch}.",
                self.FINAL_TEAM_TITLES,
                record.branch,
            )

        attachments = self._fetcher.fetch_all(self.attachment_links(record))
        subject = f"[FINAL - DISETUJUI] Pengajuan RAB Proyek {record.project} - {record.scope}"
        context = {
            "project": record.project,
            "scope": record.scope,
            "ulok": record.ulok,
            "branch": record.branch,
            "attachment_names": [a.filename for a in attachments],
            "upload_url": self._links.materai_upload_url,
        }

        message_ids = self._send_split(
            submitters, team, subject,
            Template.RAB_FINAL_SUBMITTER, Template.RAB_FINAL_TEAM,
            context, attachments,
        )

        return ResendResult(
            message="Email berhasil dikirim.",
            sent=True,
            status=record.status,
            role=decision.role,
            recipients=submitters + team,
            message_ids=message_ids,
            multi_send=True,
        )


class SpkResendService(ResendService):
    """Resends SPK approval, approval-fan-out and rejection emails (SPK_Data sheet)."""

    flow = "spk"

    FINAL_TEAM_TITLES = (JobTitle.BRANCH_MANAGER, JobTitle.COORDINATOR, JobTitle.MANAGER)

    def __init__(
        self,
        records: SpkRecordRepository,
        directory: DirectoryRepository,
        fetcher: AttachmentFetcher,
        notifier: Notifier,
        links: LinkSettings,
    ) -> None:
        super().__init__(directory, fetcher, notifier, links)
        self._records = records

    def resend(self, ulok: str, lingkup: str) -> ResendResult:
        """
        Resend whatever SPK email the row's current status calls for.

        Raises:
            RecordNotFoundError: No row matches ulok + lingkup.
            MissingBranchError: The row has no branch (approval flows only).
            RecipientNotFoundError: Nobody to send to.
            ExternalServiceError: Sheets or Gmail failed.
        """
        logger.info(
            f"Processing SPK Ulok: {ulok}, Lingkup: {lingkup}",
            extra={"extra_fields": {"flow": self.flow, "ulok": ulok, "lingkup": lingkup}}
        )

        record = self._records.find(ulok, lingkup).unwrap(
            lambda reason: RecordNotFoundError(reason, ulok, lingkup)
        )
        decision = route_spk_status(record.status)

        if not decision.should_send:
            return self._record_outcome(ResendResult.skipped(record.status))

        if decision.stage is ApprovalStage.REJECTED:
            return self._record_outcome(self._send_rejection(record, decision))

        if not record.branch:
            raise MissingBranchError(record.row_number)

        entries = self._directory.entries()

        if decision.stage is ApprovalStage.FINAL:
            result = self._send_final(record, decision, entries)
        else:
            result = self._send_stage(record, decision, entries)
        return self._record_outcome(result)

    def attachment_links(self, record: SpkRecord) -> List[AttachmentLink]:
        return [AttachmentLink("SPK.pdf", record.link_pdf)]

    def _context(self, record: SpkRecord) -> Dict[str, Any]:
        return {
            "store_name": record.store_name or "N/A",
            "store_code": record.store_code or "N/A",
            "project": record.project or "N/A",
            "scope": record.scope,
            "ulok": record.ulok,
        }

    def _subject(self, prefix: str, record: SpkRecord) -> str:
        return (
            f"{prefix} {record.store_name or 'N/A'} ({record.store_code or 'N/A'}): "
            f"{record.project or 'N/A'} - {record.scope}"
        )

    def _send_stage(
        self,
        record: SpkRecord,
        decision: RouteDecision,
        entries: Sequence[DirectoryEntry],
    ) -> ResendResult:
        title = decision.target_title or ""
        recipients = self._stage_recipients(entries, record.branch, title)
        approver = recipients[0]

        base = self._links.backend_base_url
        context = self._context(record)
        context.update({
            "level": decision.role,
            "approval_url": build_link(base, "/api/handle_spk_approval", [
                ("action", "approve"),
                ("row", record.row_number),
                ("approver", approver),
            ]),
            "rejection_url": build_link(base, "/api/reject_form/spk", [
                ("row", record.row_number),
                ("approver", approver),
            ]),
        })

        attachments = self._fetcher.fetch_all(self.attachment_links(record))
        message_id = self._notifier.send(
            recipients,
            self._subject("[PERLU PERSETUJUAN BM] SPK Proyek", record),
            Template.SPK_APPROVAL_REQUEST,
            context,
            attachments,
        )

        return ResendResult(
            message="Email berhasil dikirim.",
            sent=True,
            status=record.status,
            role=decision.role,
            recipients=recipients,
            message_ids=[message_id],
        )

    def _send_final(
        self,
        record: SpkRecord,
        decision: RouteDecision,
        entries: Sequence[DirectoryEntry],
    ) -> ResendResult:
        submitters, team = split_submitter(
            record.submitter_email,
            [record.approver_email]
            + emails_for(entries, record.branch, self.FINAL_TEAM_TITLES),
        )
        if not submitters and not team:
            raise RecipientNotFoundError(
                f"Tidak ada penerima email untuk SPK yang disetujui di cabang {record.branch}.",
                self.FINAL_TEAM_TITLES,
                record.branch,
            )

        attachments = self._fetcher.fetch_all(self.attachment_links(record))
        context = self._context(record)
        context.update({
            "approver": record.approver_email,
            "next_step_url": self._links.spk_form_url,
        })

        message_ids = self._send_split(
            submitters, team,
            self._subject("[DISETUJUI] SPK Proyek", record),
            Template.SPK_FINAL_SUBMITTER, Template.SPK_FINAL_TEAM,
            context, attachments,
        )

        return ResendResult(
            message="Email berhasil dikirim.",
            sent=True,
            status=record.status,
            role=decision.role,
            recipients=submitters + team,
            message_ids=message_ids,
            multi_send=True,
        )

    def _send_rejection(self, record: SpkRecord, decision: RouteDecision) -> ResendResult:
        recipients = unique_emails([record.submitter_email])
        if not recipients:
            raise RecipientNotFoundError(
                "Email pembuat SPK kosong.",
                branch=record.branch or None,
            )

        reason = record.rejection_reason or DEFAULT_REJECTION_REASON
        context = self._context(record)
        context.update({
            "reason": reason,
            "revision_url": self._links.spk_form_url,
        })

        message_id = self._notifier.send(
            recipients,
            self._subject("[DITOLAK] SPK untuk Proyek", record),
            Template.SPK_REJECTION,
            context,
        )

        return ResendResult(
            message="Email penolakan berhasil dikirim.",
            sent=True,
            status=record.status,
            role=decision.role,
            recipients=recipients,
            message_ids=[message_id],
            reason=reason,
        )
