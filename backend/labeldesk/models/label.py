"""
LabelDesk Backend: Label Record SQLAlchemy Model
==================================================

What:  ORM model for the `labels` table: one row per annotated image.
Who:   LabelStore (upserts and lookups); LabelDatabase.connect() creates the
       table from this model's metadata.

Table Design:
    - image_index: the primary key. The client chooses it (it is the index of
      the image in the client's image set), so there is no surrogate id and no
      autoincrement. Uniqueness per image comes from the key itself.
    - label / notes: free text, empty string when not supplied
    - modified_by: free-text name of the last writer, unbounded; the owner check
      compares it against the incoming write
    - last_modified: UTC timestamp of the write that produced the row
"""

from datetime import datetime, timezone

from sqlalchemy import BigInteger, DateTime, Text, text
from sqlalchemy.orm import Mapped, mapped_column

from labeldesk.database import Base


class LabelRecord(Base):
    """
    One label per image index.

    Lifecycle:
        1. Created by the first accepted write for an image index
        2. Replaced in place by later writes from the same modified_by
        3. Never deleted
    """

    __tablename__ = "labels"

    image_index: Mapped[int] = mapped_column(
        BigInteger,
        primary_key=True,
        autoincrement=False,
        comment="Client-assigned index of the annotated image",
    )

    label: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
        comment="Free-form classification text",
    )

    notes: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        default="",
        server_default=text("''"),
        comment="Free-form annotator commentary",
    )

    modified_by: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        comment="Name of the annotator who last wrote this record",
    )

    last_modified: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        server_default=text("CURRENT_TIMESTAMP"),
        comment="When the current values were written (UTC)",
    )

    def __repr__(self) -> str:
        return (
            f"<LabelRecord(image_index={self.image_index}, "
            f"modified_by='{self.modified_by}', last_modified='{self.last_modified}')>"
        )
