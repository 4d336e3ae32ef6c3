"""
Configuration Loader (``fieldflow_config.loader``).

Responsibility
--------------
Loads workflow YAML files and parses them into typed
``fieldflow_config.schema`` dataclass instances.  Runtime callers go
through ``fieldflow_config.get_workflow_config()``.

Invariants enforced
-------------------
* Missing required keys raise ``KeyError``; no silent defaults for
  ``workflow_id``, ``name`` or a level's ``level_type``.
* Every parsed object is a frozen dataclass from ``schema.py``.
* Boolean flags are kept as written; the validator rejects non-bool
  values such as the string ``"false"``.
* ``compute_checksum`` produces a deterministic SHA-256 hash for
  configuration identity and change detection.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
"""

from __future__ import annotations

import hashlib
import json
from pathlib import Path
from typing import Any

import yaml

from fieldflow_config.schema import (
    ApprovalPolicyDef,
    LevelDef,
    WorkflowConfigurationSet,
    WorkflowDef,
)

WORKFLOWS_FILE = "workflows.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def _as_tuple(value: Any) -> tuple[str, ...]:
    if value is None:
        return ()
    if isinstance(value, str):
        return (value,)
    return tuple(str(v) for v in value)


def parse_level(data: dict[str, Any]) -> LevelDef:
    return LevelDef(
        level_type=str(data["level_type"]).lower(),
        approval_type=str(data.get("approval_type", "any")).lower(),
        approvers=_as_tuple(data.get("approvers")),
        level_id=data.get("level_id"),
    )


def parse_workflow(data: dict[str, Any]) -> WorkflowDef:
    """
    Parse a ``WorkflowDef`` from a dict.

    Raises:
        KeyError: if ``workflow_id``, ``name`` or a level's ``level_type``
            is missing.
    """
    return WorkflowDef(
        workflow_id=str(data["workflow_id"]),
        name=str(data["name"]),
        is_active=data.get("is_active", True),
        assigned_forms=_as_tuple(data.get("assigned_forms")),
        levels=tuple(parse_level(level) for level in data.get("levels") or ()),
    )


def parse_policies(data: dict[str, Any] | None) -> ApprovalPolicyDef:
    data = data or {}
    return ApprovalPolicyDef(
        ungated_policy=str(data.get("ungated_policy", "auto_approve")).lower(),
        rejection_policy=str(data.get("rejection_policy", "approvers_only")).lower(),
        deduplicate_notifications=data.get("deduplicate_notifications", True),
    )


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization of ``data``."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_configuration(data: dict[str, Any]) -> WorkflowConfigurationSet:
    return WorkflowConfigurationSet(
        config_id=str(data.get("config_id", "default")),
        version=int(data.get("version", 1)),
        workflows=tuple(parse_workflow(w) for w in data.get("workflows") or ()),
        policies=parse_policies(data.get("policies")),
        checksum=compute_checksum(data),
    )


def load_configuration(set_dir: Path) -> WorkflowConfigurationSet:
    """Load ``workflows.yaml`` from a configuration set directory."""
    return parse_configuration(load_yaml_file(Path(set_dir) / WORKFLOWS_FILE))
