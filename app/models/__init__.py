from app.models.base import Base
from app.models.lead import Lead
from app.models.client import Client
from app.models.project import Project
from app.models.task import Task
from app.models.invoice import Invoice
from app.models.proposal import ProposalTemplate, ProposalABTest
from app.models.analytics_event import AnalyticsEvent

# Table name -> model, used by the record store adapter
MODELS_BY_TABLE = {
    model.__tablename__: model
    for model in (
        Lead,
        Client,
        Project,
        Task,
        Invoice,
        ProposalTemplate,
        ProposalABTest,
        AnalyticsEvent,
    )
}

__all__ = [
    "Base",
    "Lead",
    "Client",
    "Project",
    "Task",
    "Invoice",
    "ProposalTemplate",
    "ProposalABTest",
    "AnalyticsEvent",
    "MODELS_BY_TABLE",
]
