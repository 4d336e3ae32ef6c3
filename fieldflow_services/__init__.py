"""
Module: fieldflow_services
Responsibility:
    Coordinators that connect the pure approval engines to storage and the
    notification inbox.

Architecture position:
    Services -- may import fieldflow_engines and fieldflow_kernel.
    MUST NOT be imported by either of them.
"""

from fieldflow_services.identity_resolver import IdentityResolver
from fieldflow_services.notification_dispatcher import (
    DispatchReport,
    NotificationDispatcher,
)
from fieldflow_services.record_adapter import RecordAdapter

__all__ = [
    "DispatchReport",
    "IdentityResolver",
    "NotificationDispatcher",
    "RecordAdapter",
]
