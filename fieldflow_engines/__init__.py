"""
Module: fieldflow_engines
Responsibility:
    Package entrypoint re-exporting the pure approval engines.  This is the
    canonical import surface for higher layers (fieldflow_services).

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import fieldflow_kernel/domain and fieldflow_kernel/exceptions.
    MUST NOT import fieldflow_services or fieldflow_config.

Invariants enforced:
    - Purity: engines never call ``datetime.now()``; timestamps and
      directory snapshots are passed in by the services layer.
    - Determinism: identical inputs always produce identical outputs.
"""

from fieldflow_engines.approval import (
    LevelProgress,
    approve,
    can_act,
    level_progress,
    record_link,
    reject,
    submit,
)
from fieldflow_engines.identity import (
    actor_matches,
    resolve_approvers,
    resolve_reference,
    role_matches,
)

__all__ = [
    "LevelProgress",
    "approve",
    "can_act",
    "level_progress",
    "record_link",
    "reject",
    "submit",
    "actor_matches",
    "resolve_approvers",
    "resolve_reference",
    "role_matches",
]
