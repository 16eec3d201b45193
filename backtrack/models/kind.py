from dataclasses import dataclass
from typing import Optional, Tuple, Type

from sqlmodel import SQLModel

from backtrack.core.errors import NotFound
from backtrack.models.found_item import FoundItem
from backtrack.models.lost_item import LostItem


@dataclass(frozen=True)
class Kind:
    """Describes one item collection: its status chain, storage and field names."""

    name: str
    chain: Tuple[str, ...]
    namespace: str
    model: Type[SQLModel]
    location_field: str
    date_field: str
    owner_field: str

    @property
    def initial_status(self) -> str:
        return self.chain[0]

    @property
    def terminal_status(self) -> str:
        return self.chain[-1]

    def successor(self, status: str) -> Optional[str]:
        index = self.chain.index(status)
        if index + 1 >= len(self.chain):
            return None
        return self.chain[index + 1]

    def owner_of(self, record) -> int:
        return getattr(record, self.owner_field)


LOST = Kind(
    name="lost",
    chain=("lost", "claimed", "returned"),
    namespace="lost",
    model=LostItem,
    location_field="location",
    date_field="date_lost",
    owner_field="reporter_id",
)

FOUND = Kind(
    name="found",
    chain=("found", "matched", "returned"),
    namespace="found",
    model=FoundItem,
    location_field="location_found",
    date_field="date_found",
    owner_field="finder_id",
)

KINDS = {LOST.name: LOST, FOUND.name: FOUND}


def get_kind(name: str) -> Kind:
    try:
        return KINDS[name]
    except KeyError:
        raise NotFound(f"Unknown item kind '{name}'")
