"""
fieldflow_config -- single public entrypoint for workflow configuration.

Responsibility:
    Provides the one way to obtain YAML-defined workflows at runtime,
    ``get_workflow_config()``.  Returns a validated
    ``WorkflowConfigurationSet``; the bridges turn it into domain Workflows
    or a seeded repository.

Architecture position:
    Configuration -- sits above ``fieldflow_kernel``.  The kernel MUST NEVER
    import from ``fieldflow_config``.

Invariants enforced:
    - Single entrypoint: runtime configuration flows through
      ``get_workflow_config()``.
    - A configuration with validation errors is never returned.
    - Deterministic: the same YAML always produces the same checksum.

Failure modes:
    - ``FileNotFoundError`` -- the configuration set directory or its
      ``workflows.yaml`` does not exist.
    - ``ValueError`` -- validation failures.

Audit relevance:
    Every successful call emits a ``FIELDFLOW_CONFIG_TRACE`` log entry
    with the config id, version, checksum and workflow counts.
"""

from __future__ import annotations

from pathlib import Path

from fieldflow_config.bridges import (
    build_repository,
    build_workflow,
    build_workflows,
    deduplicate_notifications,
    rejection_policy,
    seed_repository,
    ungated_policy,
)
from fieldflow_config.loader import compute_checksum, load_configuration
from fieldflow_config.schema import (
    ApprovalPolicyDef,
    LevelDef,
    WorkflowConfigurationSet,
    WorkflowDef,
)
from fieldflow_config.validator import ConfigValidationResult, validate_configuration
from fieldflow_kernel.logging_config import get_logger

_logger = get_logger("config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"


def get_workflow_config(
    config_dir: Path | None = None,
    set_name: str = "default",
) -> WorkflowConfigurationSet:
    """The ONLY public configuration entrypoint.

    Args:
        config_dir: Directory holding configuration sets.  Defaults to
            ``fieldflow_config/sets/``.
        set_name: Subdirectory of ``config_dir`` to load.

    Returns:
        A validated WorkflowConfigurationSet.

    Raises:
        FileNotFoundError: If the set directory or its YAML is missing.
        ValueError: If configuration validation fails.
    """
    set_dir = Path(config_dir or _DEFAULT_CONFIG_DIR) / set_name
    if not set_dir.is_dir():
        raise FileNotFoundError(f"Configuration set not found: {set_dir}")

    config = load_configuration(set_dir)

    validation = validate_configuration(config)
    if not validation.is_valid:
        raise ValueError(
            "Configuration validation failed:\n"
            + "\n".join(f"  - {e}" for e in validation.errors)
        )
    for warning in validation.warnings:
        _logger.warning("config_warning", extra={"config_id": config.config_id, "detail": warning})

    _logger.info(
        "FIELDFLOW_CONFIG_TRACE",
        extra={
            "trace_type": "FIELDFLOW_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "workflow_count": len(config.workflows),
            "active_workflow_count": sum(1 for w in config.workflows if w.is_active),
            "ungated_policy": config.policies.ungated_policy,
            "rejection_policy": config.policies.rejection_policy,
            "deduplicate_notifications": config.policies.deduplicate_notifications,
        },
    )
    return config


__all__ = [
    "ApprovalPolicyDef",
    "ConfigValidationResult",
    "LevelDef",
    "WorkflowConfigurationSet",
    "WorkflowDef",
    "build_repository",
    "build_workflow",
    "build_workflows",
    "compute_checksum",
    "deduplicate_notifications",
    "get_workflow_config",
    "load_configuration",
    "rejection_policy",
    "seed_repository",
    "ungated_policy",
    "validate_configuration",
]
