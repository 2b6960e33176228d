"""Tests for overdue maintenance helper functions."""
from datetime import date

from fleet_api.services.overdue import (
    calc_due_date, calc_due_kilometers, effective_frequencies, evaluate,
)

TODAY = date(2025, 6, 30)


class TestEffectiveFrequencies:
    """Tests for effective_frequencies."""

    def test_requirement_values_win(self):
        """Requirement frequencies are used when any is set."""
        assert effective_frequencies(5000, None, 10000, 180) == (5000, None)

    def test_falls_back_to_definition(self):
        """Both unset on the requirement: definition defaults apply."""
        assert effective_frequencies(None, None, 10000, 180) == (10000, 180)


class TestCalcDue:
    """Tests for calc_due_date and calc_due_kilometers."""

    def test_due_date(self):
        assert calc_due_date(date(2025, 1, 1), 30) == date(2025, 1, 31)

    def test_due_date_without_base(self):
        assert calc_due_date(None, 30) is None

    def test_due_date_without_frequency(self):
        assert calc_due_date(date(2025, 1, 1), None) is None

    def test_due_kilometers_with_history(self):
        assert calc_due_kilometers(42000, 10000) == 52000

    def test_due_kilometers_without_history(self):
        """Counted from zero when nothing was recorded."""
        assert calc_due_kilometers(None, 10000) == 10000

    def test_due_kilometers_without_frequency(self):
        assert calc_due_kilometers(42000, None) is None


class TestEvaluate:
    """Tests for evaluate."""

    def test_overdue_by_days(self):
        result = evaluate(TODAY, 1000, None, 30, last_date=date(2025, 5, 1), last_kilometers=900)
        assert result.due_date == date(2025, 5, 31)
        assert result.overdue_by_days
        assert result.days_overdue == 30
        assert result.overdue

    def test_due_today_is_not_overdue(self):
        result = evaluate(TODAY, 0, None, 30, last_date=date(2025, 5, 31), last_kilometers=0)
        assert result.due_date == TODAY
        assert not result.overdue_by_days
        assert result.days_overdue is None

    def test_tolerance_widens_days_check(self):
        result = evaluate(TODAY, 0, None, 30, last_date=date(2025, 5, 1), last_kilometers=0, tolerance_days=30)
        assert not result.overdue_by_days
        assert result.days_overdue is None

    def test_tolerance_does_not_affect_kilometers(self):
        result = evaluate(TODAY, 20001, 10000, None, last_date=date(2025, 6, 1), last_kilometers=10000,
                          tolerance_days=365)
        assert result.overdue_by_kilometers
        assert result.kilometers_overdue == 1

    def test_exactly_at_due_kilometers_is_not_overdue(self):
        result = evaluate(TODAY, 20000, 10000, None, last_date=date(2025, 6, 1), last_kilometers=10000)
        assert not result.overdue_by_kilometers
        assert result.kilometers_overdue is None

    def test_without_record_uses_registration_date(self):
        result = evaluate(TODAY, 0, None, 90, registration_date=date(2025, 1, 1))
        assert result.due_date == date(2025, 4, 1)
        assert result.overdue_by_days

    def test_without_record_or_registration_skips_days(self):
        result = evaluate(TODAY, 0, None, 90)
        assert result.due_date is None
        assert result.days_overdue is None
        assert not result.overdue

    def test_without_record_counts_kilometers_from_zero(self):
        result = evaluate(TODAY, 15000, 10000, None)
        assert result.due_kilometers == 10000
        assert result.overdue_by_kilometers

    def test_either_check_marks_overdue(self):
        result = evaluate(TODAY, 100, 10000, 30, last_date=date(2025, 1, 1), last_kilometers=0)
        assert result.overdue_by_days
        assert not result.overdue_by_kilometers
        assert result.overdue
        assert result.kilometers_overdue is None

    def test_overdue_by_kilometers_only(self):
        """A date that is not yet due reports no days overdue."""
        result = evaluate(TODAY, 25000, 10000, 180, last_date=date(2025, 6, 20), last_kilometers=0)
        assert result.overdue_by_kilometers
        assert result.kilometers_overdue == 15000
        assert not result.overdue_by_days
        assert result.days_overdue is None
        assert result.due_date == date(2025, 12, 17)
