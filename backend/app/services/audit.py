from __future__ import annotations

from typing import Any

from fastapi.encoders import jsonable_encoder
from sqlalchemy.orm import Session

from backend.app.models.accounting import AuditLog


def log_action(
    db: Session,
    *,
    business_id: int,
    user_id: int | None,
    action: str,
    resource_type: str,
    resource_id: str,
    changes: dict[str, Any] | None = None,
    ip_address: str | None = None,
) -> None:
    """Write a single row to the audit_logs table.

    Does NOT commit; the row lands in whatever transaction the caller is
    running so it is written or discarded together with the change itself.
    """
    db.add(
        AuditLog(
            business_id=business_id,
            table_name=resource_type,
            record_id=resource_id,
            action=action,
            changed_by=user_id,
            new_values=jsonable_encoder(changes) if changes else None,
            ip_address=ip_address,
        )
    )
