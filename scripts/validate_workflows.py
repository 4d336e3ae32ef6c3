#!/usr/bin/env python3
"""
Validate a workflow configuration set and print a summary.

Usage:
    python scripts/validate_workflows.py [config_set_directory]

If no directory is given, defaults to fieldflow_config/sets/default/.

The script:
  1. Loads workflows.yaml from the directory
  2. Validates it (errors and warnings)
  3. Prints each workflow with its levels and assigned forms

Exit status is 1 when the directory is missing or validation fails.
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from fieldflow_config.loader import load_configuration
from fieldflow_config.schema import WorkflowConfigurationSet
from fieldflow_config.validator import validate_configuration


def summarize(config: WorkflowConfigurationSet) -> None:
    print(f"  config_id: {config.config_id}")
    print(f"  version:   {config.version}")
    print(f"  checksum:  {config.checksum[:16]}...")
    print(f"  ungated:   {config.policies.ungated_policy}")
    print(f"  rejection: {config.policies.rejection_policy}")
    print(f"  dedup:     {config.policies.deduplicate_notifications}")
    print()
    for workflow in config.workflows:
        state = "active" if workflow.is_active else "inactive"
        forms = ", ".join(workflow.assigned_forms) or "-"
        print(f"  [{state}] {workflow.name} ({workflow.workflow_id})  forms: {forms}")
        for number, level in enumerate(workflow.levels, start=1):
            approvers = ", ".join(level.approvers) or "-"
            print(
                f"      L{number}  {level.level_type:<5} {level.approval_type:<3}  {approvers}"
            )


def validate(set_dir: Path) -> bool:
    print(f"Loading workflows from: {set_dir}")
    config = load_configuration(set_dir)
    summarize(config)

    print()
    print("Validating...")
    result = validate_configuration(config)
    for w in result.warnings:
        print(f"  WARNING: {w}")
    if not result.is_valid:
        print("VALIDATION FAILED:")
        for err in result.errors:
            print(f"  ERROR: {err}")
        return False
    print("  OK")
    return True


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Validate a FieldFlow workflow configuration set.",
    )
    parser.add_argument(
        "set_dir", nargs="?", type=Path,
        default=ROOT / "fieldflow_config" / "sets" / "default",
        help="Configuration set directory containing workflows.yaml",
    )
    args = parser.parse_args()

    if not args.set_dir.is_dir():
        print(f"Error: directory not found: {args.set_dir}", file=sys.stderr)
        return 1

    return 0 if validate(args.set_dir) else 1


if __name__ == "__main__":
    sys.exit(main())
