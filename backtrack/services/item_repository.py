import logging
import uuid
from typing import List, Optional

from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session, col, or_, select

from backtrack.core.errors import StoreError
from backtrack.models.kind import Kind

logger = logging.getLogger(__name__)


def _contains(column, text: str):
    escaped = text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return col(column).ilike(f"%{escaped}%", escape="\\")


class ItemRepository:
    """Persistence and query surface for lost and found records."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, kind: Kind, item_id: uuid.UUID):
        try:
            return self.session.get(kind.model, item_id)
        except SQLAlchemyError as e:
            raise StoreError(f"Could not load {kind.name} item {item_id}") from e

    def save(self, record):
        self.session.add(record)
        self.commit()
        self.session.refresh(record)
        return record

    def delete(self, record):
        self.session.delete(record)
        self.commit()

    def commit(self):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error(f"Store commit failed: {e}")
            raise StoreError("Could not persist changes") from e

    def query(
        self,
        kind: Kind,
        status: Optional[str] = None,
        location: Optional[str] = None,
        keyword: Optional[str] = None,
        offset: int = 0,
        limit: Optional[int] = None,
        owner_id: Optional[int] = None,
    ) -> List:
        model = kind.model
        query = select(model).order_by(col(model.created_at).desc())

        if status:
            query = query.where(model.status == status)

        if location:
            query = query.where(_contains(getattr(model, kind.location_field), location))

        if keyword:
            query = query.where(or_(_contains(model.title, keyword), _contains(model.description, keyword)))

        if owner_id is not None:
            query = query.where(getattr(model, kind.owner_field) == owner_id)

        if offset:
            query = query.offset(offset)

        if limit is not None:
            query = query.limit(limit)

        try:
            return list(self.session.exec(query).all())
        except SQLAlchemyError as e:
            raise StoreError(f"Could not query {kind.name} items") from e
