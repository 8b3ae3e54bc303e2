"""
Event ordering and period reconstruction
"""
import pytest

from catflap.models.presence import (
    Direction,
    Event,
    InvalidTimestampError,
    Period,
    PresenceState,
    parse_timestamp,
    split_events,
)
from catflap.modules.presence.periods import reconstruct_periods
from helpers import make_event, utc


class TestSplitEvents:

    def test_sorts_ascending_and_drops_invalid_from_valid_view(self):
        late = make_event(utc(2025, 1, 1, 12), "out")
        early = make_event(utc(2025, 1, 1, 8), "in")
        unreadable = make_event(utc(2025, 1, 1, 10), "invalid", prey=True)

        views = split_events([late, unreadable, early])

        assert views.all_events == [early, unreadable, late]
        assert views.valid_events == [early, late]

    def test_equal_timestamps_keep_insertion_order(self):
        first = make_event(utc(2025, 1, 1, 8), "in")
        second = make_event(utc(2025, 1, 1, 8), "out")

        assert split_events([first, second]).all_events == [first, second]
        assert split_events([second, first]).all_events == [second, first]


class TestParseTimestamp:

    def test_zulu_and_offset_forms_agree(self):
        assert parse_timestamp("2025-01-01T23:00:00.000Z") == utc(2025, 1, 1, 23)
        assert parse_timestamp("2025-01-02T00:00:00+01:00") == utc(2025, 1, 1, 23)

    def test_naive_is_utc(self):
        assert parse_timestamp("2025-03-04T05:06:07") == utc(2025, 3, 4, 5, 6, 7)

    @pytest.mark.parametrize("text, micros", [
        ("2025-01-01T08:00:00.5Z", 500000),
        ("2025-01-01T08:00:00.12Z", 120000),
        ("2025-01-01T08:00:00.1234567Z", 123456),
    ])
    def test_any_fraction_length(self, text, micros):
        assert parse_timestamp(text) == utc(2025, 1, 1, 8, 0, 0, micros)

    @pytest.mark.parametrize("text", ["", "yesterday", "2025-13-01T00:00:00Z", None])
    def test_unparsable_raises(self, text):
        with pytest.raises(InvalidTimestampError):
            parse_timestamp(text)

    def test_from_dict_surfaces_bad_timestamp(self):
        with pytest.raises(InvalidTimestampError):
            Event.from_dict({"id": "evt_1", "timestamp": "not a time",
                             "direction": "in", "confidence": 0.9})


class TestEventJson:

    def test_round_trip_keeps_every_field(self):
        event = Event(
            id="evt_1735772400000_abc1234",
            timestamp=utc(2025, 1, 1, 23, 0, 0, 123000),
            direction=Direction.IN,
            confidence=0.9,
            prey=True,
            raw_text="in - mouse prey detected",
            image_file="evt_1735772400000_abc1234.jpg",
        )

        data = event.to_dict()

        assert data["timestamp"] == "2025-01-01T23:00:00.123Z"
        assert data["rawText"] == "in - mouse prey detected"
        assert Event.from_dict(data) == event

    def test_legacy_shape_gets_defaults(self):
        event = Event.from_dict({
            "id": "evt_1", "timestamp": "2025-01-01T08:00:00.000Z",
            "direction": "out", "confidence": 0.9,
        })

        assert event.prey is False
        assert event.raw_text is None
        assert event.image_file is None

    def test_unknown_direction_rejected(self):
        with pytest.raises(ValueError):
            Event.from_dict({"id": "evt_1", "timestamp": "2025-01-01T08:00:00Z",
                             "direction": "sideways", "confidence": 0.9})

    @pytest.mark.parametrize("prey", ["false", "true", 0, 1, None])
    def test_prey_must_be_boolean(self, prey):
        with pytest.raises(ValueError):
            Event.from_dict({"id": "evt_1", "timestamp": "2025-01-01T08:00:00Z",
                             "direction": "in", "confidence": 0.9, "prey": prey})


class TestReconstructPeriods:

    def test_alternating_events(self):
        t1, t2, t3 = utc(2025, 1, 1, 8), utc(2025, 1, 1, 12), utc(2025, 1, 1, 18)
        events = [make_event(t1, "in"), make_event(t2, "out"), make_event(t3, "in")]

        assert reconstruct_periods(events) == [
            Period(t1, t2, PresenceState.inside),
            Period(t2, t3, PresenceState.outside),
        ]

    def test_repeated_direction_is_unknown(self):
        t1, t2 = utc(2025, 1, 1, 8), utc(2025, 1, 1, 9)

        assert reconstruct_periods([make_event(t1, "in"), make_event(t2, "in")]) == [
            Period(t1, t2, PresenceState.unknown)
        ]
        assert reconstruct_periods([make_event(t1, "out"), make_event(t2, "out")])[0].state \
            is PresenceState.unknown

    def test_fewer_than_two_events(self):
        assert reconstruct_periods([]) == []
        assert reconstruct_periods([make_event(utc(2025, 1, 1, 8), "in")]) == []

    def test_n_events_give_n_minus_one_periods(self):
        events = [make_event(utc(2025, 1, 1, h), "in" if h % 2 else "out") for h in range(1, 11)]

        periods = reconstruct_periods(events)

        assert len(periods) == 9
        assert all(p.end == q.start for p, q in zip(periods, periods[1:]))

    def test_duration_hours(self):
        period = Period(utc(2025, 1, 1, 8), utc(2025, 1, 1, 9, 30), PresenceState.inside)
        assert period.duration_hours == 1.5

    def test_shared_timestamp_gives_zero_length_period(self):
        t = utc(2025, 1, 1, 8)
        periods = reconstruct_periods([make_event(t, "in"), make_event(t, "out")])

        assert periods[0].duration_hours == 0.0
