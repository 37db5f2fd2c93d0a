from typing import Any, Dict
from datetime import datetime, timezone
from sqlmodel import SQLModel, Field, Column, JSON
from sqlalchemy import DateTime


class Document(SQLModel, table=True):
    """
    One stored document. `path` is the full slash-separated address
    (collection path + "/" + doc_id); `data` holds the document fields.
    """
    __tablename__ = "documents"

    path: str = Field(primary_key=True, max_length=512)
    collection: str = Field(index=True, max_length=512)
    doc_id: str = Field(max_length=128)

    data: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )

    def touch(self) -> None:
        self.updated_at = datetime.now(timezone.utc)
