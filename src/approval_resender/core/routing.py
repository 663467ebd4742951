"""
Approval routing.

Maps the status column of a RAB or SPK row to the role that has to
act next, the directory job title holding that role and the stage
that selects the email template.

Statuses match exactly; the status cell is read untrimmed, so
"Disetujui " is not "Disetujui".
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional


class JobTitle:
    """Job titles as written in the JABATAN column of the branch directory."""
    COORDINATOR = "BRANCH BUILDING COORDINATOR"
    MANAGER = "BRANCH BUILDING & MAINTENANCE MANAGER"
    BRANCH_MANAGER = "BRANCH MANAGER"


class RabStatus:
    """RAB status strings written by the approval workflow."""
    WAITING_FOR_COORDINATOR = "Menunggu Persetujuan Koordinator"
    WAITING_FOR_MANAGER = "Menunggu Persetujuan Manager"
    APPROVED = "Disetujui"


class SpkStatus:
    """SPK status strings written by the approval workflow."""
    WAITING_FOR_BRANCH_MANAGER = "Menunggu Persetujuan Branch Manager"
    APPROVED = "SPK Disetujui"
    REJECTED = "SPK Ditolak"


class ApprovalStage(str, Enum):
    """Where a document sits in its approval chain."""
    COORDINATOR = "coordinator"
    MANAGER = "manager"
    BRANCH_MANAGER = "branch_manager"
    FINAL = "final"
    REJECTED = "rejected"
    OTHER = "other"


@dataclass(frozen=True)
class RouteDecision:
    """Outcome of routing a status string."""
    status: str
    stage: ApprovalStage
    role: Optional[str] = None
    target_title: Optional[str] = None

    @property
    def should_send(self) -> bool:
        """False when the status does not warrant an email."""
        return self.stage is not ApprovalStage.OTHER


_RAB_ROUTES = {
    RabStatus.WAITING_FOR_COORDINATOR: (
        "Koordinator", JobTitle.COORDINATOR, ApprovalStage.COORDINATOR,
    ),
    RabStatus.WAITING_FOR_MANAGER: (
        "Manager", JobTitle.MANAGER, ApprovalStage.MANAGER,
    ),
    RabStatus.APPROVED: (
        "Final Approved", None, ApprovalStage.FINAL,
    ),
}

_SPK_ROUTES = {
    SpkStatus.WAITING_FOR_BRANCH_MANAGER: (
        "Branch Manager", JobTitle.BRANCH_MANAGER, ApprovalStage.BRANCH_MANAGER,
    ),
    SpkStatus.APPROVED: (
        "Final Approved", None, ApprovalStage.FINAL,
    ),
    SpkStatus.REJECTED: (
        "Rejected", None, ApprovalStage.REJECTED,
    ),
}


def _route(table: dict, status: Optional[str]) -> RouteDecision:
    status = status or ""
    # Exact match: the workflow writes these strings verbatim
    route = table.get(status)
    if route is None:
        return RouteDecision(status=status, stage=ApprovalStage.OTHER)
    role, title, stage = route
    return RouteDecision(status=status, stage=stage, role=role, target_title=title)


def route_rab_status(status: Optional[str]) -> RouteDecision:
    """Route a RAB form status."""
    return _route(_RAB_ROUTES, status)


def route_spk_status(status: Optional[str]) -> RouteDecision:
    """Route an SPK status."""
    return _route(_SPK_ROUTES, status)
