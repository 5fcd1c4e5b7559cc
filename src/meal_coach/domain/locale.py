"""Supported interface languages."""

from typing import Literal

Locale = Literal["fr", "en"]

WEEKDAYS: dict[Locale, tuple[str, ...]] = {
    "fr": ("Lundi", "Mardi", "Mercredi", "Jeudi", "Vendredi", "Samedi", "Dimanche"),
    "en": (
        "Monday",
        "Tuesday",
        "Wednesday",
        "Thursday",
        "Friday",
        "Saturday",
        "Sunday",
    ),
}
