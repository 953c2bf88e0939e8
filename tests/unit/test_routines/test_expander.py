"""Tests for routine expansion."""

from datetime import datetime, time, timedelta

import pytest

from routine_calendar.routines.errors import ExpansionSkip
from routine_calendar.routines.expander import expand, expand_spec, parse_clock, parse_duration
from routine_calendar.routines.horizon import compute_horizon
from routine_calendar.routines.models import (
    Horizon,
    MultiWeekdaySpec,
    SingleWeekdayDurationSpec,
    Weekday,
)


MONDAY = datetime(2024, 1, 1)
SUNDAY = datetime(2024, 1, 7)


def gym(weekdays=(Weekday.MON, Weekday.WED, Weekday.FRI), start="06:00", end="07:00"):
    return MultiWeekdaySpec(
        title="Gym",
        weekdays=frozenset(weekdays),
        start_clock=start,
        end_clock=end,
    )


class TestParseClock:
    """Tests for parse_clock."""

    @pytest.mark.parametrize("value, expected", [
        ("06:00", time(6, 0)),
        ("6:30", time(6, 30)),
        ("23:59", time(23, 59)),
        ("7", time(7, 0)),
        ("08:15:42", time(8, 15)),
        (18, time(18, 0)),
        (time(9, 5, 30), time(9, 5)),
    ])
    def test_valid_values(self, value, expected):
        """Accepted clock formats."""
        assert parse_clock(value) == expected

    @pytest.mark.parametrize("value", ["", "six", "24:00", "12:60", "6pm", None, True, -1, 4.5])
    def test_invalid_values(self, value):
        """Unparseable or out of range values are rejected."""
        with pytest.raises(ExpansionSkip):
            parse_clock(value)


class TestParseDuration:
    """Tests for parse_duration."""

    def test_missing_defaults_to_an_hour(self):
        assert parse_duration(None) == timedelta(minutes=60)

    @pytest.mark.parametrize("value, minutes", [(30, 30), ("45", 45), (90.0, 90), (0, 0)])
    def test_whole_minutes(self, value, minutes):
        assert parse_duration(value) == timedelta(minutes=minutes)

    @pytest.mark.parametrize("value", [-5, "half an hour", 12.5, False])
    def test_invalid(self, value):
        with pytest.raises(ExpansionSkip):
            parse_duration(value)


class TestExpandMultiWeekday:
    """Tests for weekday set routines."""

    def test_gym_week(self):
        """Mon/Wed/Fri over a week starting Monday gives three sessions."""
        horizon = compute_horizon(MONDAY, 7)

        instances = expand([gym()], horizon)

        assert [(i.start, i.end) for i in instances] == [
            (datetime(2024, 1, 1, 6), datetime(2024, 1, 1, 7)),
            (datetime(2024, 1, 3, 6), datetime(2024, 1, 3, 7)),
            (datetime(2024, 1, 5, 6), datetime(2024, 1, 5, 7)),
        ]
        assert all(i.title == "Gym" for i in instances)

    def test_instances_land_on_matching_weekdays(self):
        """Two weeks from a Sunday contain two Mondays and two Wednesdays."""
        horizon = compute_horizon(SUNDAY, 14)

        instances = expand([gym(weekdays=(Weekday.MON, Weekday.WED))], horizon)

        assert len(instances) == 4
        assert {i.start.weekday() for i in instances} == {Weekday.MON, Weekday.WED}

    def test_start_before_now_is_excluded(self):
        """Today's session is dropped once its start has passed."""
        horizon = compute_horizon(datetime(2024, 1, 1, 6, 30), 7)

        instances = expand([gym()], horizon)

        assert instances[0].start == datetime(2024, 1, 3, 6)

    def test_start_exactly_at_now_is_included(self):
        """The horizon start is inclusive."""
        horizon = compute_horizon(datetime(2024, 1, 1, 6, 0), 1)

        instances = expand([gym()], horizon)

        assert [i.start for i in instances] == [datetime(2024, 1, 1, 6)]

    def test_end_may_fall_after_horizon(self):
        """Only the start has to be inside the horizon."""
        horizon = Horizon(start=datetime(2024, 1, 1, 5, 0), end=datetime(2024, 1, 1, 6, 30))

        instances = expand([gym()], horizon)

        assert len(instances) == 1
        assert instances[0].end > horizon.end

    def test_overnight_routine_ends_next_day(self):
        """An end clock before the start clock rolls into the next day."""
        spec = gym(weekdays=(Weekday.MON,), start="22:00", end="01:00")

        instances = expand([spec], compute_horizon(MONDAY, 1))

        assert instances[0].end == datetime(2024, 1, 2, 1, 0)

    def test_empty_weekday_set_yields_nothing(self):
        """A routine with no weekdays expands to no instances."""
        assert expand([gym(weekdays=())], compute_horizon(MONDAY, 7)) == []

    def test_malformed_clock_skips_only_that_routine(self):
        """One bad routine does not stop the others."""
        bad = gym(start="six")
        good = MultiWeekdaySpec(
            title="Standup",
            weekdays=frozenset([Weekday.TUE]),
            start_clock="09:30",
            end_clock="09:45",
        )

        instances = expand([bad, good], compute_horizon(MONDAY, 7))

        assert [i.title for i in instances] == ["Standup"]

    def test_missing_end_clock_skips_routine(self):
        assert expand([gym(end=None)], compute_horizon(MONDAY, 7)) == []

    def test_provenance_and_details_are_carried(self):
        """Note, location and source index are copied onto instances."""
        spec = MultiWeekdaySpec(
            title="Swim",
            weekdays=frozenset([Weekday.TUE]),
            start_clock="07:00",
            end_clock="08:00",
            note="Bring goggles",
            location="Pool",
        )

        [instance] = expand_spec(spec, compute_horizon(MONDAY, 6), index=3)

        assert instance.note == "Bring goggles"
        assert instance.location == "Pool"
        assert instance.source.index == 3
        assert instance.source.title == "Swim"


class TestExpandSingleWeekday:
    """Tests for single weekday routines with a duration."""

    def test_time_and_duration(self):
        spec = SingleWeekdayDurationSpec(
            title="Weekly review",
            weekday=Weekday.SUN,
            time_clock="17:00",
            duration_minutes=30,
        )

        instances = expand([spec], compute_horizon(MONDAY, 14))

        assert [(i.start, i.end) for i in instances] == [
            (datetime(2024, 1, 7, 17), datetime(2024, 1, 7, 17, 30)),
            (datetime(2024, 1, 14, 17), datetime(2024, 1, 14, 17, 30)),
        ]

    def test_defaults_to_five_pm_for_an_hour(self):
        """Missing time and duration use 17:00 and 60 minutes."""
        spec = SingleWeekdayDurationSpec(
            title="Piano",
            weekday=Weekday.THU,
            time_clock=None,
            duration_minutes=None,
        )

        [instance] = expand([spec], compute_horizon(MONDAY, 6))

        assert instance.start == datetime(2024, 1, 4, 17, 0)
        assert instance.end == datetime(2024, 1, 4, 18, 0)

    def test_unknown_weekday_yields_nothing(self):
        spec = SingleWeekdayDurationSpec(title="Piano", weekday=None)

        assert expand([spec], compute_horizon(MONDAY, 7)) == []

    def test_bad_duration_yields_nothing(self):
        spec = SingleWeekdayDurationSpec(title="Piano", weekday=Weekday.THU, duration_minutes="long")

        assert expand([spec], compute_horizon(MONDAY, 7)) == []


class TestExpandOrdering:
    """Tests for candidate order."""

    def test_routines_in_input_order_then_days_ascending(self):
        review = SingleWeekdayDurationSpec(title="Review", weekday=Weekday.MON, time_clock="05:00")

        instances = expand([gym(), review], compute_horizon(MONDAY, 7))

        assert [i.title for i in instances] == ["Gym", "Gym", "Gym", "Review"]
        gym_starts = [i.start for i in instances if i.title == "Gym"]
        assert gym_starts == sorted(gym_starts)
