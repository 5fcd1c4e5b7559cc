"""Local calendar date keys."""

from dataclasses import dataclass
from datetime import date, datetime
from zoneinfo import ZoneInfo


@dataclass(frozen=True, order=True)
class DateKey:
    """Canonical local-date key used to index per-day records.

    Always build keys through the classmethods so read and write paths agree
    on the local calendar day.
    """

    day: date

    @classmethod
    def from_date(cls, day: date) -> "DateKey":
        """Return the key for a calendar date."""
        if isinstance(day, datetime):
            raise TypeError("Use DateKey.from_datetime for datetime values")
        return cls(day=day)

    @classmethod
    def from_datetime(cls, moment: datetime, tz: ZoneInfo) -> "DateKey":
        """Return the key for the local day a timestamp falls on."""
        if moment.tzinfo is None:
            return cls(day=moment.date())
        return cls(day=moment.astimezone(tz).date())

    @classmethod
    def today(cls, tz: ZoneInfo) -> "DateKey":
        """Return the key for the current local day."""
        return cls(day=datetime.now(tz=tz).date())

    @classmethod
    def parse(cls, raw: str) -> "DateKey":
        """Parse a stored ``YYYY-MM-DD`` key."""
        return cls(day=date.fromisoformat(raw.strip()))

    def __str__(self) -> str:
        return f"{self.day.year:04d}-{self.day.month:02d}-{self.day.day:02d}"
