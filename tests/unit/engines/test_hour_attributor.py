"""
Hour Attributor Unit Tests

Tail attribution on the daily and weekly bases and their reconciliation.
"""

from datetime import date, timedelta
from decimal import Decimal

from engines.schemas.overtime import OvertimeBasis
from engines.services.hour_attributor import (
    attribute_day,
    attribute_week,
    combine_overtime,
    sort_chronologically,
    tail_attribute,
)
from tests.factories import MONDAY, at, make_context, make_entry, workweek


def d(value) -> Decimal:
    return Decimal(str(value))


class TestTailAttribute:
    """Test the running-total fold."""

    def test_overtime_lands_on_the_last_item(self):
        splits = list(tail_attribute([d(4), d(4), d(4)], d(8)))
        assert splits == [(d(4), d(0)), (d(4), d(0)), (d(0), d(4))]

    def test_straddling_item_is_split(self):
        splits = list(tail_attribute([d(5), d(5)], d(8)))
        assert splits == [(d(5), d(0)), (d(3), d(2))]

    def test_zero_capacity(self):
        splits = list(tail_attribute([d(2), d(3)], d(0)))
        assert splits == [(d(0), d(2)), (d(0), d(3))]


class TestSortChronologically:
    """Test entry ordering."""

    def test_orders_by_start(self):
        late = make_entry(start=at(MONDAY, 14))
        early = make_entry(start=at(MONDAY, 9))

        assert sort_chronologically([late, early]) == [early, late]

    def test_ties_broken_by_id(self):
        b = make_entry(id="b", start=at(MONDAY, 9))
        a = make_entry(id="a", start=at(MONDAY, 9))

        assert [e.id for e in sort_chronologically([b, a])] == ["a", "b"]


class TestAttributeDay:
    """Test daily-basis splits."""

    def test_ten_hours_against_eight(self):
        entry = make_entry(hours=10)

        [split] = attribute_day([entry], make_context())

        assert split.hours == d(10)
        assert split.regular == d(8)
        assert split.overtime == d(2)

    def test_latest_entry_gets_the_overtime(self):
        """Test that input order does not matter, only start time."""
        afternoon = make_entry(start=at(MONDAY, 13), hours=4)
        morning = make_entry(start=at(MONDAY, 8), hours=5)

        splits = attribute_day([afternoon, morning], make_context())

        assert [s.entry for s in splits] == [morning, afternoon]
        assert [(s.regular, s.overtime) for s in splits] == [(d(5), d(0)), (d(3), d(1))]

    def test_breaks_do_not_consume_capacity(self):
        work = make_entry(start=at(MONDAY, 8), hours=8)
        lunch = make_entry(start=at(MONDAY, 12), hours=1, type="BREAK")

        splits = {s.entry.id: s for s in attribute_day([work, lunch], make_context())}

        assert splits[work.id].overtime == d(0)
        assert splits[lunch.id].regular == d(1)
        assert splits[lunch.id].overtime == d(0)

    def test_pto_entries_are_regular_and_neutral(self):
        """Test 8h HOLIDAY-tagged entry plus 2h work: 10h regular, no overtime."""
        pto = make_entry(start=at(MONDAY, 0), hours=8, type="HOLIDAY")
        work = make_entry(start=at(MONDAY, 9), hours=2)

        splits = attribute_day([pto, work], make_context())

        assert sum(s.regular for s in splits) == d(10)
        assert sum(s.overtime for s in splits) == d(0)

    def test_zero_capacity_day_is_all_overtime(self):
        entry = make_entry(hours=8)

        [split] = attribute_day([entry], make_context(effective_capacity_hours=d(0)))

        assert split.regular == d(0)
        assert split.overtime == d(8)

    def test_zero_capacity_pto_entry_stays_regular(self):
        entry = make_entry(hours=8, type="TIME_OFF")

        [split] = attribute_day([entry], make_context(effective_capacity_hours=d(0)))

        assert split.regular == d(8)
        assert split.overtime == d(0)


class TestAttributeWeek:
    """Test weekly-basis overtime."""

    def by_day(self, entries):
        grouped = {}
        for entry in entries:
            grouped.setdefault(date.fromisoformat(entry.time_interval.start[:10]), []).append(entry)
        return grouped

    def test_nine_hour_days(self):
        """Test Mon-Fri at 9h/day: 45h against 40, Friday carries 5h."""
        entries = workweek([9] * 5)

        result = attribute_week(self.by_day(entries), d(40))

        assert [ot for _, ot in result] == [d(0), d(0), d(0), d(0), d(5)]

    def test_forced_day_is_overtime_without_consuming_threshold(self):
        """Test that holiday work is overtime and leaves the 40h intact."""
        entries = workweek([8, 10, 10, 10, 10])

        result = attribute_week(self.by_day(entries), d(40), forced_days={MONDAY})

        assert [ot for _, ot in result] == [d(8), d(0), d(0), d(0), d(0)]

    def test_breaks_are_excluded(self):
        entries = workweek([10] * 4) + [make_entry(start=at(MONDAY + timedelta(days=4)), hours=2, type="BREAK")]

        result = attribute_week(self.by_day(entries), d(40))

        assert len(result) == 4
        assert sum(ot for _, ot in result) == d(0)

    def test_chronological_across_days(self):
        friday = make_entry(start=at(MONDAY + timedelta(days=4)), hours=20)
        monday = make_entry(start=at(MONDAY), hours=30)

        result = dict((entry.id, ot) for entry, ot in attribute_week(self.by_day([friday, monday]), d(40)))

        assert result[monday.id] == d(0)
        assert result[friday.id] == d(10)


class TestCombineOvertime:
    """Test basis reconciliation."""

    def test_daily_basis(self):
        split = combine_overtime(d(2), d(5), OvertimeBasis.DAILY)
        assert split.overtime == d(2)
        assert split.overlap == d(0)

    def test_weekly_basis(self):
        split = combine_overtime(d(2), d(5), OvertimeBasis.WEEKLY)
        assert split.overtime == d(5)
        assert split.combined == d(5)

    def test_both_basis_counts_hours_once(self):
        split = combine_overtime(d(1), d(5), OvertimeBasis.BOTH)

        assert split.overtime == d(5)
        assert split.combined == d(5)
        assert split.overlap == d(1)
        assert split.combined <= d(1) + d(5)
