"""
Workflow status vocabulary for ProdBay.

Single source of truth for project, asset, and quote status values, the
sort priority the dashboards use, and the colour group each status renders
with on the client.
"""

from enum import Enum


class ProjectStatus(str, Enum):
    """Project lifecycle values."""
    NEW = "New"
    IN_PROGRESS = "In Progress"
    QUOTING = "Quoting"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"


class AssetStatus(str, Enum):
    """Asset lifecycle values."""
    PENDING = "Pending"
    QUOTING = "Quoting"
    APPROVED = "Approved"
    IN_PRODUCTION = "In Production"
    DELIVERED = "Delivered"


class QuoteStatus(str, Enum):
    """Quote lifecycle values."""
    PENDING = "Pending"          # requested, supplier has not bid yet
    SUBMITTED = "Submitted"      # supplier bid received
    ACCEPTED = "Accepted"
    REJECTED = "Rejected"


class SenderType(str, Enum):
    """Author of a quote chat message."""
    PRODUCER = "PRODUCER"
    SUPPLIER = "SUPPLIER"


class MilestoneStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActionType(str, Enum):
    """Kinds of follow-up tracked on a project."""
    PRODUCER_REVIEW_QUOTE = "producer_review_quote"
    PRODUCER_APPROVE_ASSET = "producer_approve_asset"
    PRODUCER_ASSIGN_SUPPLIER = "producer_assign_supplier"
    SUPPLIER_SUBMIT_QUOTE = "supplier_submit_quote"
    SUPPLIER_REVISE_QUOTE = "supplier_revise_quote"
    CLIENT_APPROVAL = "client_approval"
    OTHER = "other"


class ActionStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


class ActionAssignee(str, Enum):
    PRODUCER = "producer"
    SUPPLIER = "supplier"
    CLIENT = "client"


# Lower sorts first on dashboards
STATUS_PRIORITY = {
    "In Progress": 1,
    "In Production": 1,
    "Quoting": 2,
    "Pending": 3,
    "Approved": 4,
    "Completed": 5,
    "Delivered": 5,
    "Cancelled": 6,
}

STATUS_COLOR_GROUPS = {
    "New": "blue",
    "Pending": "gray",
    "Quoting": "yellow",
    "In Progress": "purple",
    "In Production": "purple",
    "Approved": "green",
    "Completed": "green",
    "Delivered": "green",
    "Submitted": "blue",
    "Accepted": "green",
    "Rejected": "red",
    "Cancelled": "red",
}

QUOTABLE_STATUSES = (QuoteStatus.PENDING.value, QuoteStatus.SUBMITTED.value)


def get_status_priority(status: str) -> int:
    """Sort priority for a project or asset status; unknown values sort last."""
    return STATUS_PRIORITY.get(status, 7)


def get_status_color(status: str) -> str:
    return STATUS_COLOR_GROUPS.get(status, "gray")
