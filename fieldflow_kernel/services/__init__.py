"""Kernel services: SQL-backed collaborators and the workflow registry."""

from fieldflow_kernel.services.base import BaseService
from fieldflow_kernel.services.directory_service import SqlDirectoryService
from fieldflow_kernel.services.form_store import SqlFormStore
from fieldflow_kernel.services.notification_inbox import SqlNotificationInbox
from fieldflow_kernel.services.workflow_registry import WorkflowRegistry, validate_workflow
from fieldflow_kernel.services.workflow_repository import (
    InMemoryWorkflowRepository,
    SqlWorkflowRepository,
)

__all__ = [
    "BaseService",
    "InMemoryWorkflowRepository",
    "SqlDirectoryService",
    "SqlFormStore",
    "SqlNotificationInbox",
    "SqlWorkflowRepository",
    "WorkflowRegistry",
    "validate_workflow",
]
