from typing import Optional
from sqlmodel import Field, SQLModel
from datetime import datetime, timezone


class User(SQLModel, table=True):
    __tablename__ = "users"

    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, unique=True)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    password_hash: str
    name: Optional[str] = None
    contact: Optional[str] = None

    role: str = Field(default="member")  # Possible roles: member, admin

    def public_view(self) -> dict:
        return self.model_dump(exclude={"password_hash"})
