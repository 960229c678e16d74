"""Audit log for credit and enrolment actions."""

from typing import Any

from enrol_credit.models.audit_log import AuditLog


async def log_event(
    user_id: int | None,
    event_type: str,
    entity_type: str,
    entity_id: int | str | None = None,
    metadata: dict[str, Any] | None = None,
) -> None:
    """Append to audit_logs collection. user_id is the acting user (None for system)."""
    await AuditLog(
        user_id=user_id,
        event_type=event_type,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        metadata=metadata or {},
    ).insert()
