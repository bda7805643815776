"""
Audit recorder

Every accepted mutation writes exactly one AuditLog row in the same
transaction as the mutation. ``audited_transaction`` is the unit of work
that binds the two: it commits only when the block finished cleanly and
recorded exactly one row, and rolls back otherwise, so a denied or failed
attempt leaves neither the mutation nor an audit row behind.

Failed logins are the one audit write without a domain mutation; they go
through ``record_failed_login`` in their own short transaction.
"""

import logging
from collections.abc import AsyncIterator, Callable
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy.ext.asyncio import AsyncSession

from tracker.models.audit_log import AuditAction, AuditLog
from tracker.models.base import utcnow

logger = logging.getLogger(__name__)


async def record(
    db: AsyncSession,
    tenant_id: int | None,
    actor_id: int | None,
    action: AuditAction,
    entity_type: str,
    entity_id: Any,
    ip_address: str | None = None,
) -> AuditLog:
    """
    Append one audit row inside the caller's open transaction.

    Never commits; the row becomes visible with the mutation or not at all.
    """
    entry = AuditLog(
        tenant_id=tenant_id,
        user_id=actor_id,
        action=AuditAction(action).value,
        entity_type=entity_type,
        entity_id=str(entity_id) if entity_id is not None else None,
        ip_address=ip_address,
        created_at=utcnow(),
    )
    db.add(entry)
    await db.flush()
    return entry


class AuditedTransaction:
    """Recorder handed out by ``audited_transaction``; counts what it writes."""

    def __init__(self, db: AsyncSession, ip_address: str | None = None) -> None:
        self.db = db
        self.ip_address = ip_address
        self.entries: list[AuditLog] = []

    async def record(
        self,
        tenant_id: int | None,
        actor_id: int | None,
        action: AuditAction,
        entity_type: str,
        entity_id: Any,
    ) -> AuditLog:
        entry = await record(self.db, tenant_id, actor_id, action, entity_type, entity_id, self.ip_address)
        self.entries.append(entry)
        return entry


@asynccontextmanager
async def audited_transaction(db: AsyncSession, ip_address: str | None = None) -> AsyncIterator[AuditedTransaction]:
    """
    Run a mutation and its audit row as one unit of work.

    Usage::

        async with audited_transaction(db, ip) as tx:
            project = Project(...)
            db.add(project)
            await db.flush()
            await tx.record(tenant_id, actor.user_id, AuditAction.CREATE_PROJECT, "project", project.id)
    """
    tx = AuditedTransaction(db, ip_address)
    try:
        yield tx
        if len(tx.entries) != 1:
            raise RuntimeError(f"A mutation must record exactly one audit entry, got {len(tx.entries)}")
        entry = tx.entries[0]
        summary = (entry.action, entry.entity_type, entry.entity_id, entry.tenant_id, entry.user_id)
        await db.commit()
    except BaseException:
        # Also covers CancelledError from an aborted request
        await db.rollback()
        raise

    logger.info("Audit: action=%s entity=%s:%s tenant_id=%s actor_id=%s", *summary)


async def record_failed_login(
    tenant_id: int | None,
    user_id: int | None,
    ip_address: str | None = None,
    session_factory: Callable[[], AsyncSession] | None = None,
) -> AuditLog:
    """
    Write a LOGIN_FAILED row in its own minimal transaction.

    Uses a separate session so the record survives whatever the caller does
    with its own transaction.
    """
    if session_factory is None:
        from tracker import database

        session_factory = database.AsyncSessionLocal

    async with session_factory() as session:
        entry = await record(session, tenant_id, user_id, AuditAction.LOGIN_FAILED, "user", user_id, ip_address)
        await session.commit()
        await session.refresh(entry)
    logger.warning("Failed login recorded: user_id=%s tenant_id=%s ip=%s", user_id, tenant_id, ip_address)
    return entry
