import random

import pytest

from roomdash.runtime.presence import (
    DuplicateConnectionError,
    InvalidRoomNameError,
    MembershipLedger,
    Occupancy,
    RoomCount,
    UnknownConnectionError,
)


def _assert_consistent(ledger: MembershipLedger, conns: list[str]) -> None:
    rooms = ledger.rooms()
    assert all(count > 0 for count in rooms.values())
    for room, count in rooms.items():
        assert count == len(ledger.occupants(room))
        assert sorted(ledger.occupants(room)) == sorted(c for c in conns if ledger.room_of(c) == room)
    mapped = [c for c in conns if ledger.room_of(c) is not None]
    assert sum(rooms.values()) == len(mapped)
    for c in mapped:
        assert ledger.room_of(c) in rooms


def test_register_and_unregister_track_total(ledger):
    assert ledger.total_connections == 0
    assert ledger.register_connection("a") == 1
    assert ledger.register_connection("b") == 2

    ledger.unregister_connection("a")
    assert ledger.total_connections == 1
    assert not ledger.is_registered("a")


def test_unregister_unknown_connection_is_caller_error(ledger):
    ledger.register_connection("a")
    ledger.unregister_connection("a")

    with pytest.raises(UnknownConnectionError):
        ledger.unregister_connection("a")
    assert ledger.total_connections == 0


def test_register_twice_is_caller_error(ledger):
    ledger.register_connection("a")
    with pytest.raises(DuplicateConnectionError):
        ledger.register_connection("a")
    assert ledger.total_connections == 1


def test_join_returns_new_occupancy(ledger):
    ledger.register_connection("a")
    ledger.register_connection("b")

    assert ledger.join("a", "lobby") == Occupancy(room="lobby", count=1)
    assert ledger.join("b", "lobby") == Occupancy(room="lobby", count=2)
    assert ledger.room_of("a") == "lobby"


def test_join_replaces_previous_room(ledger):
    for c in ("a", "b", "c"):
        ledger.register_connection(c)
    ledger.join("a", "A")
    ledger.join("b", "A")
    ledger.join("c", "B")
    before = sum(ledger.rooms().values())

    joined, previous = ledger.join_with_previous("a", "B")

    assert joined == Occupancy(room="B", count=2)
    assert previous == Occupancy(room="A", count=1)
    assert ledger.occupancy("A") == 1
    assert ledger.occupancy("B") == 2
    assert sum(ledger.rooms().values()) == before
    assert ledger.room_of("a") == "B"


def test_join_same_room_again_keeps_count(ledger):
    ledger.register_connection("a")
    ledger.join("a", "lobby")
    assert ledger.join("a", "lobby") == Occupancy(room="lobby", count=1)


def test_last_occupant_switching_deletes_room(ledger):
    ledger.register_connection("a")
    ledger.join("a", "A")
    _, previous = ledger.join_with_previous("a", "B")

    assert previous == Occupancy(room="A", count=0)
    assert "A" not in ledger.rooms()


@pytest.mark.parametrize("name", ["", "   ", "\t\n", None])
def test_empty_room_name_is_rejected_without_state_change(ledger, name):
    ledger.register_connection("a")
    ledger.join("a", "lobby")

    with pytest.raises(InvalidRoomNameError):
        ledger.join("a", name)

    assert ledger.room_of("a") == "lobby"
    assert ledger.rooms() == {"lobby": 1}


def test_room_names_are_case_sensitive_and_not_normalized(ledger):
    for c in ("a", "b", "c"):
        ledger.register_connection(c)
    ledger.join("a", "Lobby")
    ledger.join("b", "lobby")
    ledger.join("c", " lobby ")

    assert ledger.rooms() == {"Lobby": 1, "lobby": 1, " lobby ": 1}


def test_join_unknown_connection_is_rejected(ledger):
    with pytest.raises(UnknownConnectionError):
        ledger.join("ghost", "lobby")
    assert ledger.rooms() == {}


def test_leave_without_room_returns_none(ledger):
    ledger.register_connection("a")
    assert ledger.leave("a") is None
    assert ledger.leave("never-registered") is None


def test_leave_decrements_and_deletes_empty_room(ledger):
    ledger.register_connection("a")
    ledger.register_connection("b")
    ledger.join("a", "lobby")
    ledger.join("b", "lobby")

    assert ledger.leave("a") == Occupancy(room="lobby", count=1)
    assert ledger.room_of("a") is None
    assert ledger.leave("b") == Occupancy(room="lobby", count=0)
    assert ledger.rooms() == {}


def test_unregister_vacates_room(ledger):
    ledger.register_connection("a")
    ledger.register_connection("b")
    ledger.join("a", "lobby")
    ledger.join("b", "lobby")

    assert ledger.unregister_connection("a") == Occupancy(room="lobby", count=1)
    assert ledger.total_connections == 1
    assert ledger.occupants("lobby") == ["b"]


def _ledger_with_counts(counts: dict[str, int]) -> MembershipLedger:
    ledger = MembershipLedger()
    for room, count in counts.items():
        for i in range(count):
            conn_id = f"{room}-{i}"
            ledger.register_connection(conn_id)
            ledger.join(conn_id, room)
    return ledger


def test_ranking_orders_by_count_with_creation_order_ties():
    ledger = _ledger_with_counts({"A": 5, "B": 9, "C": 2, "D": 9, "E": 1, "F": 7})

    assert ledger.top_rooms(5) == [
        RoomCount("B", 9),
        RoomCount("D", 9),
        RoomCount("F", 7),
        RoomCount("A", 5),
        RoomCount("C", 2),
    ]
    assert ledger.most_popular_room() == RoomCount("B", 9)


def test_top_rooms_default_limit_and_custom_limit():
    ledger = _ledger_with_counts({"A": 1, "B": 2, "C": 3, "D": 4, "E": 5, "F": 6})

    assert [r.name for r in ledger.top_rooms()] == ["F", "E", "D", "C", "B"]
    assert [r.name for r in ledger.top_rooms(2)] == ["F", "E"]


def test_recreated_room_moves_to_back_of_tie_order():
    ledger = _ledger_with_counts({"A": 1, "B": 1})
    ledger.leave("A-0")
    ledger.join("A-0", "A")

    assert ledger.most_popular_room() == RoomCount("B", 1)
    assert [r.name for r in ledger.top_rooms()] == ["B", "A"]


def test_empty_ledger_has_sentinel_and_no_rankings(ledger):
    assert ledger.most_popular_room() == RoomCount("None", 0)
    assert ledger.top_rooms() == []


def test_random_operation_sequences_keep_counters_consistent():
    rng = random.Random(1234)
    ledger = MembershipLedger()
    rooms = ["red", "green", "blue", "Red"]
    live: list[str] = []
    seen: list[str] = []

    for step in range(2000):
        op = rng.random()
        if op < 0.2 or not live:
            conn_id = f"c{step}"
            ledger.register_connection(conn_id)
            live.append(conn_id)
            seen.append(conn_id)
        elif op < 0.6:
            ledger.join(rng.choice(live), rng.choice(rooms))
        elif op < 0.8:
            ledger.leave(rng.choice(live))
        else:
            conn_id = live.pop(rng.randrange(len(live)))
            ledger.unregister_connection(conn_id)
            assert ledger.room_of(conn_id) is None

        _assert_consistent(ledger, seen)
        assert ledger.total_connections == len(live)


def test_occupants_follow_joins_switches_and_leaves(ledger):
    for c in ("a", "b", "c"):
        ledger.register_connection(c)
    ledger.join("a", "A")
    ledger.join("b", "A")
    ledger.join("c", "B")

    ledger.join("a", "B")
    assert ledger.occupants("A") == ["b"]
    assert sorted(ledger.occupants("B")) == ["a", "c"]

    ledger.leave("b")
    ledger.unregister_connection("c")
    assert ledger.occupants("A") == []
    assert ledger.occupants("B") == ["a"]
