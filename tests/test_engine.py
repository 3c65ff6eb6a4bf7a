from datetime import date, datetime, timedelta, timezone

import pytest

from countie.engine import (
    BiggestUnit,
    TemporalBreakdown,
    TimeUnit,
    as_utc,
    biggest_unit,
    biggest_unit_short_label,
    breakdown,
    format_remaining,
    parse_units,
    progress,
)


def utc(*args):
    return datetime(*args, tzinfo=timezone.utc)


class TestAsUtc:
    def test_naive_is_taken_as_utc(self):
        assert as_utc(datetime(2025, 1, 1, 12, 0)) == utc(2025, 1, 1, 12, 0)

    def test_aware_is_converted(self):
        plus_two = timezone(timedelta(hours=2))
        assert as_utc(datetime(2025, 1, 1, 12, 0, tzinfo=plus_two)) == utc(2025, 1, 1, 10, 0)

    def test_date_is_midnight(self):
        assert as_utc(date(2025, 3, 4)) == utc(2025, 3, 4)


class TestBreakdown:
    def test_zero_difference(self):
        now = utc(2025, 5, 5, 5, 5)
        assert breakdown(now, now) == TemporalBreakdown()

    def test_calendar_month_end(self):
        # Jan 31 + 1 month clamps to Feb 28, leaving one day
        b = breakdown(utc(2025, 1, 31), utc(2025, 3, 1))
        assert (b.years, b.months, b.days, b.hours, b.minutes) == (0, 1, 1, 0, 0)

    def test_leap_day_to_next_year(self):
        b = breakdown(utc(2024, 2, 29), utc(2025, 2, 28))
        assert b == TemporalBreakdown(years=1)

    def test_hours_and_minutes(self):
        b = breakdown(utc(2025, 1, 1), utc(2025, 1, 1, 1, 30))
        assert b == TemporalBreakdown(hours=1, minutes=30)

    def test_seconds_are_dropped(self):
        b = breakdown(utc(2025, 1, 1), utc(2025, 1, 1, 0, 2, 59))
        assert b == TemporalBreakdown(minutes=2)

    def test_past_components_share_negative_sign(self):
        b = breakdown(utc(2025, 3, 1), utc(2025, 1, 31))
        assert b == TemporalBreakdown(months=-1, days=-1)

        b = breakdown(utc(2025, 1, 6, 12, 0), utc(2025, 1, 6, 10, 30))
        assert b == TemporalBreakdown(hours=-1, minutes=-30)

    def test_naive_and_aware_inputs_mix(self):
        b = breakdown(datetime(2025, 1, 1), utc(2025, 1, 3))
        assert b.days == 2


class TestProgress:
    def test_halfway(self):
        assert progress(utc(2025, 1, 1), utc(2025, 1, 11), utc(2025, 1, 6)) == 0.5

    def test_target_equal_to_counting_since_is_complete(self):
        start = utc(2025, 1, 1)
        assert progress(start, start, utc(2024, 6, 1)) == 1.0

    def test_target_before_counting_since_is_complete_for_any_now(self):
        since = utc(2025, 1, 10)
        target = utc(2025, 1, 1)
        for now in (utc(2020, 1, 1), utc(2025, 1, 5), utc(2030, 1, 1)):
            assert progress(since, target, now) == 1.0

    def test_clamped(self):
        since, target = utc(2025, 1, 1), utc(2025, 1, 2)
        assert progress(since, target, utc(2024, 12, 1)) == 0.0
        assert progress(since, target, utc(2025, 2, 1)) == 1.0

    def test_monotonic_in_now(self):
        since, target = utc(2025, 1, 1), utc(2025, 1, 11)
        nows = [utc(2024, 12, 30) + timedelta(hours=7 * i) for i in range(50)]
        values = [progress(since, target, n) for n in nows]
        assert values == sorted(values)
        assert all(0.0 <= v <= 1.0 for v in values)


class TestBiggestUnit:
    def test_picks_most_significant(self):
        assert biggest_unit(TemporalBreakdown(days=3, hours=2)) == BiggestUnit(3, TimeUnit.DAY)
        assert biggest_unit(TemporalBreakdown(years=1, minutes=4)) == BiggestUnit(1, TimeUnit.YEAR)

    def test_minutes_only_in_past(self):
        unit = biggest_unit(TemporalBreakdown(minutes=-5))
        assert unit == BiggestUnit(-5, TimeUnit.MINUTE)
        assert unit.is_past

    def test_none_when_all_zero(self):
        assert biggest_unit(TemporalBreakdown()) is None

    def test_is_past_matches_instant_order(self):
        anchor = utc(2025, 6, 15, 12, 0)
        offsets = [
            timedelta(minutes=1),
            timedelta(hours=5),
            timedelta(days=40),
            timedelta(days=800),
            timedelta(days=-1, minutes=-3),
            timedelta(minutes=-59),
            timedelta(days=-400),
        ]
        for off in offsets:
            other = anchor + off
            unit = biggest_unit(breakdown(anchor, other))
            assert unit is not None
            assert unit.is_past == (other < anchor)
        assert biggest_unit(breakdown(anchor, anchor)) is None


class TestShortLabel:
    @pytest.mark.parametrize(
        "b, expected",
        [
            (TemporalBreakdown(years=2, months=3), "2y"),
            (TemporalBreakdown(years=-1, days=-4), "1y ago"),
            (TemporalBreakdown(months=5, hours=1), "5m"),
            (TemporalBreakdown(months=-5), "5m ago"),
            (TemporalBreakdown(days=3, hours=23, minutes=59), "3d"),
            (TemporalBreakdown(days=-1), "1d ago"),
        ],
    )
    def test_calendar_units(self, b, expected):
        assert biggest_unit_short_label(b) == expected

    @pytest.mark.parametrize(
        "hours, minutes, expected",
        [
            (0, 0, "?"),
            (0, 45, "1h"),
            (0, -45, "1h ago"),
            (3, 0, "3h"),
            (-3, 0, "3h ago"),
            (3, 15, "4h"),
            (-3, -15, "4h ago"),
            (3, -15, "3h"),
            (-3, 15, "3h ago"),
        ],
    )
    def test_hour_rounding(self, hours, minutes, expected):
        assert biggest_unit_short_label(TemporalBreakdown(hours=hours, minutes=minutes)) == expected

    def test_ninety_minutes_ago(self):
        now = utc(2025, 1, 6, 12, 0)
        assert biggest_unit_short_label(breakdown(now, now - timedelta(minutes=90))) == "2h ago"

    def test_ago_suffix_tracks_sign(self):
        now = utc(2025, 6, 15, 12, 0)
        for minutes in (-600000, -3000, -61, -1, 1, 61, 3000, 600000):
            b = breakdown(now, now + timedelta(minutes=minutes))
            label = biggest_unit_short_label(b)
            assert label.endswith(" ago") == (biggest_unit(b).value < 0)


class TestFormatRemaining:
    def test_now_for_zero_difference(self):
        now = utc(2025, 1, 1, 8, 0)
        assert format_remaining(now, now) == "Now"

    def test_now_below_an_hour(self):
        now = utc(2025, 1, 1, 8, 0)
        assert format_remaining(now, now + timedelta(minutes=30)) == "Now"

    def test_now_for_whole_months_and_years(self):
        # Only days and hours are checked, so exact calendar months or years also read "Now"
        assert format_remaining(utc(2025, 1, 1), utc(2025, 2, 1)) == "Now"
        assert format_remaining(utc(2025, 1, 1), utc(2027, 1, 1)) == "Now"
        assert format_remaining(utc(2025, 3, 1), utc(2024, 3, 1)) == "Now"

    def test_days_and_hours(self):
        now = utc(2025, 1, 1, 8, 0)
        target = now + timedelta(days=3, hours=2)
        assert format_remaining(now, target, {TimeUnit.DAY, TimeUnit.HOUR}) == "3 days, 2 hours"
        assert format_remaining(now, target, ["day", "hour"]) == "3 days, 2 hours"

    def test_default_units(self):
        assert (
            format_remaining(utc(2025, 1, 1), utc(2027, 4, 2, 5, 0))
            == "2 years, 3 months, 1 day, 5 hours"
        )

    def test_singular_units(self):
        assert format_remaining(utc(2025, 1, 1), utc(2025, 1, 2, 1, 0)) == "1 day, 1 hour"

    def test_past_gets_ago_suffix(self):
        assert format_remaining(utc(2025, 1, 10), utc(2025, 1, 8, 21, 0)) == "1 day, 3 hours ago"

    def test_years_fold_into_months(self):
        got = format_remaining(utc(2025, 1, 1), utc(2026, 3, 2), {TimeUnit.MONTH, TimeUnit.DAY})
        assert got == "14 months, 1 day"

    def test_months_fold_into_calendar_days(self):
        got = format_remaining(utc(2025, 1, 1), utc(2025, 3, 1, 6, 0), {TimeUnit.DAY, TimeUnit.HOUR})
        assert got == "59 days, 6 hours"

    def test_minutes_when_allowed(self):
        got = format_remaining(
            utc(2025, 1, 1),
            utc(2025, 1, 2, 0, 5),
            {TimeUnit.DAY, TimeUnit.HOUR, TimeUnit.MINUTE},
        )
        assert got == "1 day, 5 minutes"

    def test_all_allowed_units_zero(self):
        assert format_remaining(utc(2025, 1, 1), utc(2025, 1, 3), {TimeUnit.YEAR}) == "0 years"

    def test_unknown_unit(self):
        with pytest.raises(ValueError):
            format_remaining(utc(2025, 1, 1), utc(2025, 1, 3), ["fortnight"])


class TestParseUnits:
    def test_default_for_none_and_empty(self):
        default = {TimeUnit.YEAR, TimeUnit.MONTH, TimeUnit.DAY, TimeUnit.HOUR}
        assert parse_units(None) == default
        assert parse_units([]) == default

    def test_plural_and_case(self):
        assert parse_units(["Days", "HOUR"]) == {TimeUnit.DAY, TimeUnit.HOUR}
