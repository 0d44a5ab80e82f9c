"""
LabelDesk Backend: Label Store
================================

What:  Persistence operations for Label Records.
How:   Every operation opens its own session on the injected LabelDatabase
       and runs a single statement. Nothing is cached in process.
Who:   LabelService.

Operations:
    list_all()        SELECT * FROM labels ORDER BY image_index
    find_by_index()   SELECT ... WHERE image_index = :idx
    upsert()          INSERT ... ON CONFLICT (image_index) DO UPDATE SET ...
                      [WHERE labels.modified_by = excluded.modified_by]
                      RETURNING *

Atomicity:
    upsert() is one statement, so two concurrent writers for the same
    image_index are serialized by the database: the row ends up holding
    exactly one writer's values, never a mix. With require_owner=True the
    owner comparison lives in the DO UPDATE ... WHERE clause of that same
    statement, which makes "update only if absent or owned by me" atomic too.

Errors:
    StorageUnavailableError from LabelDatabase.session() propagates as is.
"""

import logging
from datetime import datetime
from typing import Callable, Dict, List, Optional

from sqlalchemy import select
from sqlalchemy.dialects import postgresql, sqlite

from labeldesk.database import LabelDatabase
from labeldesk.models.label import LabelRecord

logger = logging.getLogger(__name__)

# Dialects whose INSERT supports ON CONFLICT ... DO UPDATE ... WHERE ... RETURNING
_UPSERT_INSERTS: Dict[str, Callable] = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class LabelStore:
    """Label Record persistence over an explicitly provided database handle."""

    def __init__(self, database: LabelDatabase):
        dialect = database.dialect_name
        if dialect not in _UPSERT_INSERTS:
            raise ValueError(
                f"Unsupported database dialect '{dialect}'. "
                f"Supported: {', '.join(sorted(_UPSERT_INSERTS))}"
            )
        self._database = database
        self._insert = _UPSERT_INSERTS[dialect]

    async def list_all(self) -> List[LabelRecord]:
        """Return every stored record. Callers must not rely on the order."""
        async with self._database.session() as session:
            result = await session.execute(
                select(LabelRecord).order_by(LabelRecord.image_index)
            )
            return list(result.scalars().all())

    async def find_by_index(self, image_index: int) -> Optional[LabelRecord]:
        async with self._database.session() as session:
            result = await session.execute(
                select(LabelRecord).where(LabelRecord.image_index == image_index)
            )
            return result.scalar_one_or_none()

    async def upsert(
        self,
        image_index: int,
        label: str,
        notes: str,
        modified_by: str,
        last_modified: datetime,
        *,
        require_owner: bool = False,
    ) -> Optional[LabelRecord]:
        """
        Insert the record, or replace its mutable fields in place.

        Args:
            image_index: Key of the record
            label, notes: New text values (replace the stored ones)
            modified_by: Name of the writer
            last_modified: Timestamp of this write
            require_owner: Only update an existing record whose modified_by
                equals the incoming modified_by

        Returns:
            The record as stored after the write, or None when require_owner
            is set and the existing record belongs to someone else (nothing
            was written in that case).
        """
        stmt = self._insert(LabelRecord).values(
            image_index=image_index,
            label=label,
            notes=notes,
            modified_by=modified_by,
            last_modified=last_modified,
        )
        stmt = stmt.on_conflict_do_update(
            index_elements=[LabelRecord.image_index],
            set_={
                "label": stmt.excluded.label,
                "notes": stmt.excluded.notes,
                "modified_by": stmt.excluded.modified_by,
                "last_modified": stmt.excluded.last_modified,
            },
            where=(
                LabelRecord.modified_by == stmt.excluded.modified_by
                if require_owner
                else None
            ),
        )

        async with self._database.session() as session:
            result = await session.scalars(
                stmt.returning(LabelRecord),
                execution_options={"populate_existing": True},
            )
            record = result.one_or_none()
            await session.commit()

        if record is None:
            logger.debug("Upsert for image_index=%s skipped: owner mismatch", image_index)
        return record
