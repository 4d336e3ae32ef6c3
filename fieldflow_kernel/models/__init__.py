"""ORM models for the approval workflow engine."""

from fieldflow_kernel.models.employee import EmployeeModel
from fieldflow_kernel.models.form_record import (
    FormRecordModel,
    history_from_json,
    history_to_json,
)
from fieldflow_kernel.models.notification import NotificationModel
from fieldflow_kernel.models.workflow import LevelModel, WorkflowModel

__all__ = [
    "EmployeeModel",
    "FormRecordModel",
    "LevelModel",
    "NotificationModel",
    "WorkflowModel",
    "history_from_json",
    "history_to_json",
]
