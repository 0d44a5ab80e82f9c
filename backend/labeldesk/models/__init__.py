"""ORM models. Importing this package registers every table on Base.metadata."""

from labeldesk.models.label import LabelRecord

__all__ = ["LabelRecord"]
