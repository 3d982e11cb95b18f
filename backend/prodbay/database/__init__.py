from .base import Base
from .models import (
    ActionItem,
    AIProcessingLog,
    Asset,
    Message,
    ProducerSettings,
    Project,
    ProjectMilestone,
    Quote,
    QuoteStatusHistory,
    Supplier,
)

__all__ = [
    "Base",
    "ActionItem",
    "AIProcessingLog",
    "Asset",
    "Message",
    "ProducerSettings",
    "Project",
    "ProjectMilestone",
    "Quote",
    "QuoteStatusHistory",
    "Supplier",
]
