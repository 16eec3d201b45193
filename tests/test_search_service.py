from datetime import datetime, timedelta, timezone

import pytest

from backtrack.core.errors import ValidationError
from backtrack.models.found_item import FoundItem
from backtrack.models.kind import FOUND, LOST
from backtrack.models.lost_item import LostItem


@pytest.fixture
def catalogue(repository):
    start = datetime(2024, 5, 1, tzinfo=timezone.utc)
    records = [
        LostItem(title="Blue wallet", location="Main Library", reporter_id=1, created_at=start),
        LostItem(title="Keys", description="Wallet-sized keyring", location="Gym", reporter_id=2,
                 created_at=start + timedelta(hours=1)),
        LostItem(title="Laptop 100%", location="Library annex", reporter_id=1, status="claimed",
                 created_at=start + timedelta(hours=2)),
        FoundItem(title="Brown WALLET", location_found="Bus stop", finder_id=3, created_at=start),
        FoundItem(title="Umbrella", location_found="Library", finder_id=1,
                  created_at=start + timedelta(hours=1)),
    ]
    for record in records:
        repository.save(record)
    return records


def test_search_matches_both_collections_case_insensitively(search, catalogue):
    results = search.search("wallet")

    assert [r.title for r in results["lost"]] == ["Keys", "Blue wallet"]
    assert [r.title for r in results["found"]] == ["Brown WALLET"]


def test_search_treats_wildcards_literally(search, catalogue):
    assert [r.title for r in search.search("100%")["lost"]] == ["Laptop 100%"]
    assert search.search("_")["lost"] == []


def test_list_filters_and_orders_newest_first(search, catalogue):
    titles = [r.title for r in search.list(LOST, location="library")]
    assert titles == ["Laptop 100%", "Blue wallet"]

    assert [r.title for r in search.list(LOST, status="claimed")] == ["Laptop 100%"]
    assert [r.title for r in search.list(FOUND, keyword="umbr")] == ["Umbrella"]


def test_list_paginates_by_offset(search, catalogue):
    assert [r.title for r in search.list(LOST, page=1, page_size=2)] == ["Laptop 100%", "Keys"]
    assert [r.title for r in search.list(LOST, page=2, page_size=2)] == ["Blue wallet"]
    assert search.list(LOST, page=3, page_size=2) == []


def test_list_rejects_unknown_status(search, catalogue):
    with pytest.raises(ValidationError):
        search.list(FOUND, status="claimed")


def test_owned_by(search, catalogue):
    mine = search.owned_by(1)

    assert {r.title for r in mine["lost"]} == {"Blue wallet", "Laptop 100%"}
    assert [r.title for r in mine["found"]] == ["Umbrella"]
