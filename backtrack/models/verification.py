from typing import Optional
import uuid
from sqlalchemy import Index, text
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone

class Verification(SQLModel, table=True):
    __tablename__ = "verifications"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Challenged item; lost and found live in separate tables, so no foreign key
    item_id: uuid.UUID = Field(index=True)
    item_type: str = Field(index=True)  # values: "lost", "found"

    # Claimant
    claimant_id: int = Field(index=True)

    # Content
    proof: Optional[str] = None  # url to image or text proof
    question: Optional[str] = None
    answer: Optional[str] = None

    status: str = Field(default="pending", index=True)  # values: "pending", "approved", "rejected"
    verified_by: Optional[int] = None
    rejection_reason: Optional[str] = None

    decided_at: Optional[datetime] = None

    __table_args__ = (
        # At most one pending challenge per item
        Index(
            "uq_pending_verification_per_item",
            "item_type",
            "item_id",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )
