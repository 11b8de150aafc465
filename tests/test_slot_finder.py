"""
Tests for the slot finder.
"""

import pendulum

from agendaai.domain.models import SchedulingPolicy, TimeRange
from agendaai.domain.slot_finder import SlotFinder, find_available_slots

TZ = "America/Sao_Paulo"


def _local(value: str, tz: str = TZ):
    return pendulum.parse(value, tz=tz)


def _busy(start: str, end: str) -> TimeRange:
    return TimeRange(start=_local(start), end=_local(end))


def _finder(**overrides) -> SlotFinder:
    return SlotFinder(SchedulingPolicy(timezone=TZ, start_hour=9, end_hour=18, **overrides))


class TestScenarios:
    """Reference scenarios of the slot search."""

    def test_request_at_now_starts_next_hour(self):
        """Scenario A: requesting the current time starts at the next whole hour."""
        now = _local("2024-04-29 10:00")  # Monday

        slots = _finder().find_available_slots(requested_time=now, busy_intervals=[], now=now)

        assert slots == [
            _local("2024-04-29 11:00"),
            _local("2024-04-29 12:00"),
            _local("2024-04-29 13:00"),
        ]

    def test_busy_hour_is_skipped(self):
        """Scenario B: a busy hour is excluded, neighbours remain."""
        now = _local("2024-04-29 08:30")

        slots = _finder().find_available_slots(
            requested_time=_local("2024-04-29 10:00"),
            busy_intervals=[_busy("2024-04-29 11:00", "2024-04-29 12:00")],
            now=now
        )

        assert slots == [
            _local("2024-04-29 10:00"),
            _local("2024-04-29 12:00"),
            _local("2024-04-29 13:00"),
        ]

    def test_saturday_request_snaps_to_monday(self):
        """Scenario C: a weekend request moves to Monday opening time."""
        now = _local("2024-04-26 08:00")  # Friday

        slots = _finder().find_available_slots(
            requested_time=_local("2024-04-27 10:00"),  # Saturday
            busy_intervals=[],
            now=now
        )

        assert slots[0] == _local("2024-04-29 09:00")

    def test_past_request_starts_from_now(self):
        """Scenario D: a past request starts at the next hour after now."""
        now = _local("2024-04-29 10:20")

        slots = _finder().find_available_slots(
            requested_time=_local("2024-04-22 10:00"),
            busy_intervals=[],
            now=now
        )

        assert slots[0] == _local("2024-04-29 11:00")

    def test_fully_busy_horizon_returns_nothing(self):
        """Scenario E: a fully busy horizon yields no slots and no error."""
        now = _local("2024-04-29 08:00")

        slots = _finder().find_available_slots(
            requested_time=now,
            busy_intervals=[_busy("2024-04-29 00:00", "2024-06-01 00:00")],
            now=now
        )

        assert slots == []


class TestSearchStart:
    """Tests for resolving where the search begins."""

    def test_future_request_inside_working_hours_is_kept(self):
        finder = _finder()

        start = finder.resolve_search_start(
            requested_time=_local("2024-04-30 14:30"),
            now=_local("2024-04-29 10:00")
        )

        assert start == _local("2024-04-30 14:30")

    def test_evening_request_moves_to_next_morning(self):
        finder = _finder()

        start = finder.resolve_search_start(
            requested_time=_local("2024-04-29 19:00"),
            now=_local("2024-04-29 10:00")
        )

        assert start == _local("2024-04-30 09:00")

    def test_early_request_moves_to_opening(self):
        finder = _finder()

        start = finder.resolve_search_start(
            requested_time=_local("2024-04-30 06:15"),
            now=_local("2024-04-29 10:00")
        )

        assert start == _local("2024-04-30 09:00")

    def test_requested_time_in_other_timezone_is_converted(self):
        """15:00 UTC is 12:00 in Sao Paulo."""
        finder = _finder()

        start = finder.resolve_search_start(
            requested_time=pendulum.parse("2024-04-30T15:00:00Z"),
            now=_local("2024-04-29 10:00")
        )

        assert start == _local("2024-04-30 12:00")
        assert start.timezone_name == TZ

    def test_policy_without_working_days_gives_up(self):
        finder = _finder(exclude_weekdays=(0, 1, 2, 3, 4, 5, 6))
        now = _local("2024-04-29 10:00")

        assert finder.resolve_search_start(now, now) is None
        assert finder.find_available_slots(requested_time=now, busy_intervals=[], now=now) == []

    def test_search_window_spans_horizon(self):
        finder = _finder()

        window = finder.search_window(_local("2024-04-29 10:00"))

        assert window.start == _local("2024-04-29 10:00")
        assert window.end == _local("2024-05-13 18:00")


class TestSlotSearch:
    """Edge cases of the candidate enumeration."""

    def test_late_friday_request_rolls_over_weekend(self):
        now = _local("2024-04-26 08:00")  # Friday

        slots = _finder().find_available_slots(
            requested_time=_local("2024-04-26 17:30"),
            busy_intervals=[],
            now=now
        )

        assert slots[0] == _local("2024-04-29 09:00")

    def test_touching_busy_interval_does_not_block(self):
        """A busy interval ending exactly at a slot start is not an overlap."""
        now = _local("2024-04-29 08:00")

        slots = _finder().find_available_slots(
            requested_time=_local("2024-04-29 09:00"),
            busy_intervals=[
                _busy("2024-04-29 08:00", "2024-04-29 09:00"),
                _busy("2024-04-29 10:00", "2024-04-29 10:30"),
            ],
            now=now
        )

        assert slots == [
            _local("2024-04-29 09:00"),
            _local("2024-04-29 11:00"),
            _local("2024-04-29 12:00"),
        ]

    def test_partial_overlap_blocks_whole_hour(self):
        now = _local("2024-04-29 08:00")

        slots = _finder().find_available_slots(
            requested_time=_local("2024-04-29 09:00"),
            busy_intervals=[_busy("2024-04-29 09:45", "2024-04-29 10:15")],
            now=now
        )

        assert slots == [
            _local("2024-04-29 11:00"),
            _local("2024-04-29 12:00"),
            _local("2024-04-29 13:00"),
        ]

    def test_long_slot_may_start_in_last_working_hour(self):
        """Only the start hour is checked against closing time."""
        now = _local("2024-04-29 08:00")

        slots = _finder(slot_duration_minutes=120).find_available_slots(
            requested_time=_local("2024-04-29 17:00"),
            busy_intervals=[],
            now=now
        )

        assert slots[0] == _local("2024-04-29 17:00")

    def test_long_slot_checks_overlap_over_full_duration(self):
        now = _local("2024-04-29 08:00")

        slots = _finder(slot_duration_minutes=120).find_available_slots(
            requested_time=_local("2024-04-29 16:00"),
            busy_intervals=[_busy("2024-04-29 17:30", "2024-04-29 18:00")],
            now=now
        )

        # 16:00 and 17:00 both reach into the busy half hour
        assert slots[0] == _local("2024-04-30 09:00")

    def test_busy_intervals_order_does_not_matter(self):
        now = _local("2024-04-29 08:00")
        busy = [
            _busy("2024-04-29 13:00", "2024-04-29 14:00"),
            _busy("2024-04-29 09:00", "2024-04-29 11:00"),
        ]

        forward = _finder().find_available_slots(requested_time=now, busy_intervals=busy, now=now)
        backward = _finder().find_available_slots(requested_time=now, busy_intervals=list(reversed(busy)), now=now)

        assert forward == backward == [
            _local("2024-04-29 11:00"),
            _local("2024-04-29 12:00"),
            _local("2024-04-29 14:00"),
        ]

    def test_short_horizon_limits_search(self):
        now = _local("2024-04-26 08:00")  # Friday

        slots = _finder(search_horizon_days=1).find_available_slots(
            requested_time=_local("2024-04-26 17:30"),
            busy_intervals=[],
            now=now
        )

        assert slots == []

    def test_max_suggestions_is_configurable(self):
        now = _local("2024-04-29 08:00")

        slots = _finder(max_suggestions=12).find_available_slots(
            requested_time=_local("2024-04-29 09:00"),
            busy_intervals=[],
            now=now
        )

        assert len(slots) == 12
        # 9 slots on Monday, then Tuesday from opening time
        assert slots[9] == _local("2024-04-30 09:00")

    def test_results_are_utc(self):
        now = _local("2024-04-29 10:00")

        slots = _finder().find_available_slots(requested_time=now, busy_intervals=[], now=now)

        assert slots[0].timezone_name == "UTC"
        assert slots[0].to_iso8601_string() == "2024-04-29T14:00:00Z"

    def test_daylight_saving_change_keeps_wall_clock_hours(self):
        """Berlin switches to summer time on Sunday 2024-03-31."""
        berlin = SlotFinder(SchedulingPolicy(timezone="Europe/Berlin", start_hour=9, end_hour=17))
        now = _local("2024-03-29 08:00", tz="Europe/Berlin")  # Friday

        slots = berlin.find_available_slots(
            requested_time=_local("2024-03-29 17:30", tz="Europe/Berlin"),
            busy_intervals=[],
            now=now
        )

        assert slots[0] == pendulum.parse("2024-04-01T07:00:00Z")

    def test_module_level_function(self):
        now = _local("2024-04-29 10:00")
        policy = SchedulingPolicy(timezone=TZ)

        slots = find_available_slots(now, "Europe/Lisbon", policy, [], now)

        assert slots[0] == _local("2024-04-29 11:00")


class TestProperties:
    """Invariants that hold for every output."""

    BUSY_SETS = [
        [],
        [("2024-04-29 09:00", "2024-04-29 18:00")],
        [("2024-04-29 11:00", "2024-04-29 12:00"), ("2024-04-30 09:00", "2024-04-30 15:30")],
        [("2024-04-29 00:00", "2024-05-02 12:00")],
        [("2024-04-29 12:30", "2024-04-29 12:45"), ("2024-05-03 16:00", "2024-05-06 10:00")],
    ]
    REQUESTS = [
        "2024-04-27 13:00",  # Saturday
        "2024-04-29 08:00",
        "2024-04-29 10:30",
        "2024-04-29 23:00",
        "2024-05-03 17:59",  # Friday
    ]

    def _cases(self):
        now = _local("2024-04-29 10:15")
        for busy_set in self.BUSY_SETS:
            busy = [_busy(start, end) for start, end in busy_set]
            for requested in self.REQUESTS:
                yield _local(requested), busy, now

    def test_bounds_order_cap_and_no_overlap(self):
        policy = SchedulingPolicy(timezone=TZ, start_hour=9, end_hour=18)
        finder = SlotFinder(policy)

        for requested, busy, now in self._cases():
            slots = finder.find_available_slots(requested_time=requested, busy_intervals=busy, now=now)

            assert len(slots) <= policy.max_suggestions
            assert slots == sorted(set(slots))

            floor = max(now.start_of("hour").add(hours=1), requested)
            for slot in slots:
                local = slot.in_timezone(TZ)
                assert local.day_of_week not in (5, 6)
                assert 9 <= local.hour < 18
                assert slot >= floor
                slot_range = TimeRange(start=slot, end=slot.add(minutes=policy.slot_duration_minutes))
                assert not any(slot_range.overlaps(interval) for interval in busy)

    def test_same_inputs_same_output(self):
        finder = _finder()

        for requested, busy, now in self._cases():
            first = finder.find_available_slots(requested_time=requested, busy_intervals=busy, now=now)
            second = finder.find_available_slots(requested_time=requested, busy_intervals=list(busy), now=now)
            assert first == second
