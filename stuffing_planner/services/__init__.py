"""Service layer for the stuffing planner.

Plan Store client, readiness engine, duplicate detection, position lookup,
assignment coordination and the plan workspace orchestrator. Import from
the submodules directly.
"""
