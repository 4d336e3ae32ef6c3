"""
FieldFlow Kernel - approval workflow core.

A multi-level approval engine for construction-field paperwork with:
- Ordered escalation levels (Any / All approval)
- Role and user approver references resolved at evaluation time
- Append-only approval history
- Per-recipient notification fan-out
"""

__version__ = "0.1.0"
