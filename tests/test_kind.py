import pytest

from backtrack.core.errors import NotFound
from backtrack.models.kind import FOUND, LOST, get_kind


def test_chains():
    assert LOST.chain == ("lost", "claimed", "returned")
    assert FOUND.chain == ("found", "matched", "returned")
    assert LOST.initial_status == "lost"
    assert FOUND.terminal_status == "returned"


def test_successor():
    assert LOST.successor("lost") == "claimed"
    assert FOUND.successor("matched") == "returned"
    assert FOUND.successor("returned") is None


def test_get_kind():
    assert get_kind("lost") is LOST

    with pytest.raises(NotFound):
        get_kind("stolen")
