"""Helper functions for overdue maintenance calculations."""
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Optional, Tuple


@dataclass
class OverdueResult:
    due_date: Optional[date] = None
    due_kilometers: Optional[int] = None
    days_overdue: Optional[int] = None
    kilometers_overdue: Optional[int] = None
    overdue_by_days: bool = False
    overdue_by_kilometers: bool = False

    @property
    def overdue(self) -> bool:
        return self.overdue_by_days or self.overdue_by_kilometers


def effective_frequencies(
    kilometers_frequency: Optional[int],
    days_frequency: Optional[int],
    default_kilometers: Optional[int] = None,
    default_days: Optional[int] = None,
) -> Tuple[Optional[int], Optional[int]]:
    """
    Frequencies that apply to a requirement.

    A requirement that sets neither frequency inherits both defaults from its
    maintenance definition.
    """
    if kilometers_frequency is None and days_frequency is None:
        return default_kilometers, default_days
    return kilometers_frequency, days_frequency


def calc_due_date(base_date: Optional[date], days_frequency: Optional[int]) -> Optional[date]:
    """base + frequency days; None without a base date or frequency."""
    if base_date is None or not days_frequency:
        return None
    return base_date + timedelta(days=days_frequency)


def calc_due_kilometers(last_kilometers: Optional[int], kilometers_frequency: Optional[int]) -> Optional[int]:
    """
    Calculate next due odometer reading.

    - With history: last_kilometers + frequency
    - Without history: frequency (counted from zero)
    """
    if not kilometers_frequency:
        return None
    return (last_kilometers or 0) + kilometers_frequency


def evaluate(
    today: date,
    current_kilometers: int,
    kilometers_frequency: Optional[int],
    days_frequency: Optional[int],
    last_date: Optional[date] = None,
    last_kilometers: Optional[int] = None,
    registration_date: Optional[date] = None,
    tolerance_days: int = 0,
) -> OverdueResult:
    """Evaluate one (vehicle, requirement) pair.

    Without a previous record the time check counts from the registration
    date when known. Tolerance only widens the time check.
    """
    result = OverdueResult()

    base_date = last_date if last_date is not None else registration_date
    result.due_date = calc_due_date(base_date, days_frequency)
    if result.due_date is not None and today > result.due_date + timedelta(days=tolerance_days):
        result.overdue_by_days = True
        result.days_overdue = (today - result.due_date).days

    result.due_kilometers = calc_due_kilometers(last_kilometers, kilometers_frequency)
    if result.due_kilometers is not None and current_kilometers > result.due_kilometers:
        result.overdue_by_kilometers = True
        result.kilometers_overdue = current_kilometers - result.due_kilometers

    return result
