import uuid
from typing import Any, Dict, List, Optional
from sqlalchemy import JSON, Column
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class LostItem(SQLModel, table=True):
    __tablename__ = "lost_items"

    id: uuid.UUID = Field(default_factory=uuid.uuid4, primary_key=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc), index=True)
    updated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    # Owner info
    reporter_id: int = Field(index=True)  # users.id, not cascaded

    # Item fields
    title: str
    description: Optional[str] = None
    location: Optional[str] = None
    date_lost: Optional[datetime] = None
    contact_info: Optional[str] = None
    images: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    attributes: Dict[str, Any] = Field(default_factory=dict, sa_column=Column(JSON, nullable=False))

    status: str = Field(default="lost", index=True)  # lost -> claimed -> returned
    verification_id: Optional[uuid.UUID] = Field(default=None)
