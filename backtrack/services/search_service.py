from typing import Dict, List, Optional

from backtrack.core.errors import ValidationError
from backtrack.models.kind import FOUND, KINDS, LOST, Kind
from backtrack.services.item_repository import ItemRepository


class SearchFacade:
    """Read-side filtering over the lost and found collections."""

    def __init__(self, repository: ItemRepository):
        self.repository = repository

    def search(self, keyword: str) -> Dict[str, List]:
        # each collection is filtered on its own; there is no cross ranking
        keyword = (keyword or "").strip()
        return {
            LOST.name: self.repository.query(LOST, keyword=keyword or None),
            FOUND.name: self.repository.query(FOUND, keyword=keyword or None),
        }

    def list(
        self,
        kind: Kind,
        status: Optional[str] = None,
        location: Optional[str] = None,
        keyword: Optional[str] = None,
        page: int = 1,
        page_size: int = 20,
    ) -> List:
        if status and status not in kind.chain:
            raise ValidationError(f"Unknown {kind.name} item status '{status}'")

        if page < 1 or page_size < 1:
            raise ValidationError("Page and page size must be positive")

        return self.repository.query(
            kind,
            status=status or None,
            location=(location or "").strip() or None,
            keyword=(keyword or "").strip() or None,
            offset=(page - 1) * page_size,
            limit=page_size,
        )

    def owned_by(self, actor_id: int) -> Dict[str, List]:
        return {name: self.repository.query(kind, owner_id=actor_id) for name, kind in KINDS.items()}
