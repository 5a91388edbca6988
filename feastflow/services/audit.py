"""Audit trail entries for the admin activity feed."""

import json
from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from feastflow.models import AuditLog


def record_event(
    db: AsyncSession,
    action: str,
    user_id: Optional[str] = None,
    entity_type: Optional[str] = None,
    entity_id: Optional[str] = None,
    details: Optional[dict[str, Any]] = None,
    ip_address: Optional[str] = None,
) -> AuditLog:
    """Stage an audit entry; it is written with the caller's transaction."""
    entry = AuditLog(
        user_id=user_id,
        action=action,
        entity_type=entity_type,
        entity_id=entity_id,
        details=json.dumps(details) if details else None,
        ip_address=ip_address,
    )
    db.add(entry)
    return entry
