"""Tests for incremental, ordered event emission across repeated fetches."""

from __future__ import annotations

import random

from stack_fakes import make_event, newest_first

from stack_tail.engine.dedup import EventDeduplicator


def test_first_fetch_emits_everything_oldest_first() -> None:
    dedup = EventDeduplicator()
    events = [make_event("e1", seconds=0), make_event("e2", seconds=1), make_event("e3", seconds=2)]

    emitted = dedup.accept(newest_first(events))

    assert [event.event_id for event in emitted] == ["e1", "e2", "e3"]
    assert dedup.seen == {"e1", "e2", "e3"}


def test_repeated_history_only_emits_new_events() -> None:
    dedup = EventDeduplicator()
    e1, e2, e3 = (make_event(f"e{i}", seconds=i) for i in (1, 2, 3))

    first = dedup.accept(newest_first([e1, e2]))
    second = dedup.accept(newest_first([e1, e2, e3]))
    third = dedup.accept(newest_first([e1, e2, e3]))

    assert [event.event_id for event in first] == ["e1", "e2"]
    assert [event.event_id for event in second] == ["e3"]
    assert third == []


def test_each_id_emitted_exactly_once_across_overlapping_fetches() -> None:
    rng = random.Random(7)
    history = [make_event(f"e{i:03d}", seconds=i // 3) for i in range(60)]
    dedup = EventDeduplicator()
    emitted_ids: list[str] = []

    # The provider history only grows; each fetch sees a prefix of it.
    cutoffs = sorted(rng.sample(range(1, 61), 12)) + [60, 60]
    for cutoff in cutoffs:
        emitted_ids.extend(event.event_id for event in dedup.accept(newest_first(history[:cutoff])))

    assert sorted(emitted_ids) == sorted(event.event_id for event in history)
    assert len(emitted_ids) == len(set(emitted_ids))


def test_emission_is_chronological_even_when_fetch_order_is_skewed() -> None:
    dedup = EventDeduplicator()
    skewed = [
        make_event("b", seconds=5),
        make_event("a", seconds=9),
        make_event("c", seconds=1),
    ]

    emitted = dedup.accept(skewed)

    assert [event.event_id for event in emitted] == ["c", "b", "a"]


def test_same_instant_events_are_ordered_by_id() -> None:
    dedup = EventDeduplicator()
    same_time = [make_event(event_id, seconds=3) for event_id in ("e-b", "e-c", "e-a")]

    emitted = dedup.accept(same_time)

    assert [event.event_id for event in emitted] == ["e-a", "e-b", "e-c"]


def test_timestamps_never_decrease_across_cycles() -> None:
    dedup = EventDeduplicator()
    first = dedup.accept(newest_first([make_event("e1", seconds=0), make_event("e2", seconds=10)]))
    late = make_event("late", seconds=5)
    fresh = make_event("e3", seconds=12)

    second = dedup.accept(newest_first([late, fresh]))

    emitted = first + second
    timestamps = [event.timestamp for event in emitted]
    assert timestamps == sorted(timestamps)
    assert [event.event_id for event in second] == ["e3"]
    assert [event.event_id for event in dedup.late_events] == ["late"]
    assert "late" in dedup.seen


def test_same_instant_tie_break_holds_across_cycles() -> None:
    dedup = EventDeduplicator()
    first = dedup.accept([make_event("e-b", seconds=3)])

    second = dedup.accept(newest_first([make_event(i, seconds=3) for i in ("e-a", "e-b", "e-c")]))

    assert [event.event_id for event in first + second] == ["e-b", "e-c"]
    assert [event.event_id for event in dedup.late_events] == ["e-a"]


def test_earliest_seen_copy_of_an_event_wins() -> None:
    dedup = EventDeduplicator()
    original = make_event("e1", seconds=1, status="CREATE_IN_PROGRESS")
    rewritten = make_event("e1", seconds=99, status="CREATE_COMPLETE")

    first = dedup.accept([original])
    second = dedup.accept([rewritten])

    assert first == [original]
    assert second == []


def test_duplicate_ids_within_one_fetch_are_collapsed() -> None:
    dedup = EventDeduplicator()
    event = make_event("dup", seconds=1)

    emitted = dedup.accept([event, event])

    assert emitted == [event]
