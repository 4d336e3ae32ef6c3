#!/usr/bin/env python3
"""
Seed a database with the workflows of a configuration set.

Creates the tables if needed, writes every configured workflow through the
workflow registry's repository, and optionally loads employees from a YAML
file of the form:

    employees:
      - employee_id: e-100
        display_name: Dana Reyes
        job_title: Supervisor
        app_role: supervisor

Usage:
    python scripts/seed_workflows.py --db-url sqlite:///fieldflow.db
    python scripts/seed_workflows.py --employees staff.yaml
"""

import argparse
import sys
from pathlib import Path

# Add project root to path
ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

DB_URL = "sqlite:///fieldflow.db"


def main() -> int:
    parser = argparse.ArgumentParser(
        description="Seed workflows (and optionally employees) into a database.",
    )
    parser.add_argument(
        "--db-url", type=str, default=DB_URL,
        help=f"Database URL (default: {DB_URL})",
    )
    parser.add_argument(
        "--config-dir", type=Path, default=None,
        help="Directory of configuration sets (default: fieldflow_config/sets)",
    )
    parser.add_argument(
        "--set", dest="set_name", default="default",
        help="Configuration set name (default: default)",
    )
    parser.add_argument(
        "--employees", type=Path, default=None,
        help="YAML file with an 'employees' list",
    )
    args = parser.parse_args()

    from fieldflow_config import get_workflow_config, seed_repository
    from fieldflow_config.loader import load_yaml_file
    from fieldflow_kernel.db.engine import create_tables, init_engine_from_url, session_scope
    from fieldflow_kernel.domain.clock import SystemClock
    from fieldflow_kernel.domain.directory import Employee
    from fieldflow_kernel.services.directory_service import SqlDirectoryService
    from fieldflow_kernel.services.workflow_repository import SqlWorkflowRepository

    try:
        config = get_workflow_config(args.config_dir, args.set_name)
    except (FileNotFoundError, ValueError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    init_engine_from_url(args.db_url)
    create_tables()

    with session_scope() as session:
        count = seed_repository(config, SqlWorkflowRepository(session), SystemClock().now())
        print(f"  Seeded {count} workflow(s) from '{config.config_id}' v{config.version}")

        if args.employees is not None:
            directory = SqlDirectoryService(session)
            entries = load_yaml_file(args.employees).get("employees") or []
            for entry in entries:
                directory.upsert(Employee(
                    employee_id=str(entry["employee_id"]),
                    display_name=str(entry["display_name"]),
                    job_title=str(entry.get("job_title", "")),
                    app_role=entry.get("app_role"),
                    is_active=bool(entry.get("is_active", True)),
                ))
            print(f"  Seeded {len(entries)} employee(s)")

    return 0


if __name__ == "__main__":
    sys.exit(main())
