"""Shopping list consolidation and aisle categorization."""

import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass
from fractions import Fraction
from typing import Literal

from meal_coach.domain.locale import Locale
from meal_coach.domain.plans import (
    CategorizedShoppingList,
    ShoppingListItem,
    WeeklyPlan,
)
from meal_coach.services.generation import MealPlanGenerator
from meal_coach.services.prompts import AISLES, collect_ingredients

ShoppingListMode = Literal["local", "generated"]

# unit token -> (family, factor to the family's base unit)
_UNITS: dict[str, tuple[str, float]] = {
    "mg": ("mass", 0.001),
    "g": ("mass", 1.0),
    "gr": ("mass", 1.0),
    "gram": ("mass", 1.0),
    "grams": ("mass", 1.0),
    "kg": ("mass", 1000.0),
    "ml": ("volume", 1.0),
    "cl": ("volume", 10.0),
    "dl": ("volume", 100.0),
    "l": ("volume", 1000.0),
    "tbsp": ("tbsp", 1.0),
    "tablespoon": ("tbsp", 1.0),
    "tablespoons": ("tbsp", 1.0),
    "cs": ("tbsp", 1.0),
    "tsp": ("tsp", 1.0),
    "teaspoon": ("tsp", 1.0),
    "teaspoons": ("tsp", 1.0),
    "cc": ("tsp", 1.0),
    "cup": ("cup", 1.0),
    "cups": ("cup", 1.0),
    "pinch": ("pinch", 1.0),
    "pincée": ("pinch", 1.0),
    "pincées": ("pinch", 1.0),
    "slice": ("slice", 1.0),
    "slices": ("slice", 1.0),
    "tranche": ("slice", 1.0),
    "tranches": ("slice", 1.0),
    "clove": ("clove", 1.0),
    "cloves": ("clove", 1.0),
    "gousse": ("clove", 1.0),
    "gousses": ("clove", 1.0),
}

_BASE_UNIT = {"mass": "g", "volume": "ml"}
_LARGE_UNIT = {"mass": ("kg", 1000.0), "volume": ("l", 1000.0)}

_UNICODE_FRACTIONS = {"½": "1/2", "¼": "1/4", "¾": "3/4", "⅓": "1/3", "⅔": "2/3"}

_QUANTITY = re.compile(
    r"^(?P<qty>\d+\s+\d+/[1-9]\d*|\d+/[1-9]\d*|\d+(?:[.,]\d+)?)(?![\d/])"
    r"\s*(?P<rest>.*)$"
)
_UNIT = re.compile(r"^(?P<unit>[^\W\d_]+\.?)(?:\s+|$)(?P<rest>.*)$")
_NAME_PREFIX = re.compile(r"^(?:of\s+|de\s+|d['’]\s*|du\s+|des\s+)", re.IGNORECASE)

# aisle index -> keywords; checked in order, first match wins
_AISLE_KEYWORDS: list[tuple[int, tuple[str, ...]]] = [
    (5, ("frozen", "surgelé", "congelé")),
    (6, ("water", "juice", "coffee", "tea", "eau", "jus", "café", "thé")),
    (
        2,
        (
            "milk", "yogurt", "yoghurt", "cheese", "butter", "cream", "egg",
            "lait", "yaourt", "fromage", "beurre", "crème", "oeuf", "œuf",
            "feta", "mozzarella", "parmesan", "skyr", "ricotta",
        ),
    ),
    (
        1,
        (
            "chicken", "beef", "pork", "turkey", "lamb", "ham", "bacon",
            "salmon", "tuna", "cod", "shrimp", "fish", "poulet", "boeuf",
            "bœuf", "porc", "dinde", "agneau", "jambon", "saumon", "thon",
            "cabillaud", "crevette", "poisson", "steak",
        ),
    ),
    (3, ("bread", "baguette", "bun", "tortilla", "wrap", "pain", "brioche")),
    (
        0,
        (
            "onion", "garlic", "tomato", "potato", "carrot", "lettuce",
            "spinach", "pepper", "zucchini", "broccoli", "cucumber", "avocado",
            "apple", "banana", "berry", "berries", "lemon", "lime", "orange",
            "mushroom", "herb", "parsley", "basil", "oignon", "ail", "tomate",
            "pomme", "carotte", "salade", "épinard", "poivron", "courgette",
            "brocoli", "concombre", "avocat", "banane", "citron", "champignon",
            "persil", "basilic", "fruit", "légume",
        ),
    ),
    (
        4,
        (
            "rice", "pasta", "flour", "sugar", "oil", "salt", "oat", "lentil",
            "bean", "chickpea", "quinoa", "honey", "sauce", "spice", "vinegar",
            "nut", "almond", "riz", "pâte", "farine", "sucre", "huile", "sel",
            "avoine", "lentille", "haricot", "pois chiche", "miel", "épice",
            "vinaigre", "noix", "amande", "conserve",
        ),
    ),
]
_OTHER_AISLE = 7

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParsedIngredient:
    """Ingredient line split into quantity, unit and name."""

    raw: str
    quantity: Fraction | None
    unit: str | None
    name: str


@dataclass(frozen=True)
class ConsolidatedIngredient:
    """Summed quantity for one ingredient and unit family."""

    name: str
    quantity: str

    @property
    def label(self) -> str:
        """Quantity and name as one display string."""
        if not self.quantity:
            return self.name
        return f"{self.quantity} {self.name}".strip()


def parse_ingredient(line: str) -> ParsedIngredient:
    """Split a free-text ingredient line."""
    text = line.strip()
    for symbol, replacement in _UNICODE_FRACTIONS.items():
        text = text.replace(symbol, f" {replacement} ").strip()
    match = _QUANTITY.match(text)
    if match is None:
        return ParsedIngredient(raw=line.strip(), quantity=None, unit=None, name=text)
    quantity = _parse_quantity(match.group("qty"))
    rest = match.group("rest").strip()
    unit = None
    unit_match = _UNIT.match(rest)
    if unit_match is not None:
        token = unit_match.group("unit").rstrip(".").lower()
        if token in _UNITS:
            unit = token
            rest = unit_match.group("rest").strip()
    name = _NAME_PREFIX.sub("", rest).strip()
    if not name:
        return ParsedIngredient(raw=line.strip(), quantity=None, unit=None, name=text)
    return ParsedIngredient(raw=line.strip(), quantity=quantity, unit=unit, name=name)


def singularize(word: str) -> str:
    """Return a naive singular form of an English or French noun phrase."""
    lowered = word.lower().strip()
    if lowered.endswith(("oes", "ches", "shes", "xes", "sses")):
        return lowered[:-2]
    if lowered.endswith("s") and not lowered.endswith("ss"):
        return lowered[:-1]
    return lowered


def consolidate_ingredients(lines: Iterable[str]) -> list[ConsolidatedIngredient]:
    """Merge ingredient lines, summing quantities of compatible units.

    Lines are grouped by singular name and unit family. Mass and volume are
    converted to a shared base unit; any other unit family stays on its own
    line. Lines without a quantity are kept once each.
    """
    totals: dict[tuple[str, str], Fraction] = {}
    names: dict[tuple[str, str], str] = {}
    plurals: dict[tuple[str, str], str] = {}
    units: dict[tuple[str, str], str | None] = {}
    order: list[tuple[str, str]] = []
    for line in lines:
        if not line.strip():
            continue
        parsed = parse_ingredient(line)
        if parsed.quantity is None:
            key = (parsed.name.lower(), "")
            if key not in names:
                order.append(key)
                names[key] = parsed.name
            continue
        family, factor = _UNITS.get(parsed.unit or "", ("count", 1.0))
        key = (singularize(parsed.name), family)
        if key not in names:
            order.append(key)
            names[key] = parsed.name
            totals[key] = Fraction(0)
            units[key] = parsed.unit
        if family == "count" and parsed.quantity > 1:
            plurals.setdefault(key, parsed.name)
        totals[key] += parsed.quantity * Fraction(factor).limit_denominator(1000)

    consolidated: list[ConsolidatedIngredient] = []
    for key in order:
        if key not in totals:
            consolidated.append(ConsolidatedIngredient(name=names[key], quantity=""))
            continue
        family = key[1]
        amount = totals[key]
        if family == "count":
            name = names[key] if amount == 1 else plurals.get(key, names[key])
            consolidated.append(
                ConsolidatedIngredient(name=name, quantity=_format_number(amount))
            )
            continue
        consolidated.append(
            ConsolidatedIngredient(
                name=names[key],
                quantity=_format_measure(amount, family, units[key]),
            )
        )
    return consolidated


def categorize(name: str) -> int:
    """Return the aisle index for an ingredient name."""
    lowered = name.lower()
    for aisle, keywords in _AISLE_KEYWORDS:
        if any(keyword in lowered for keyword in keywords):
            return aisle
    return _OTHER_AISLE


def build_shopping_list(
    plan: WeeklyPlan, locale: Locale
) -> list[CategorizedShoppingList]:
    """Consolidate a plan's ingredients and group them by aisle."""
    grouped: dict[int, list[ShoppingListItem]] = {}
    for item in consolidate_ingredients(collect_ingredients(plan)):
        grouped.setdefault(categorize(item.name), []).append(
            ShoppingListItem(name=item.name, quantity=item.quantity)
        )
    aisles = AISLES[locale]
    return [
        CategorizedShoppingList(category=aisles[index], items=grouped[index])
        for index in sorted(grouped)
    ]


@dataclass
class ShoppingListService:
    """Builds shopping lists locally or through the generator."""

    generator: MealPlanGenerator
    mode: ShoppingListMode = "local"

    async def build(
        self, plan: WeeklyPlan, locale: Locale
    ) -> list[CategorizedShoppingList]:
        """Return the categorized shopping list for a plan."""
        if self.mode == "generated":
            _logger.info("Generating shopping list for week %s", plan.week_number)
            return await self.generator.generate_shopping_list(plan, locale)
        return build_shopping_list(plan, locale)


def _parse_quantity(raw: str) -> Fraction:
    parts = raw.replace(",", ".").split()
    return sum((Fraction(part) for part in parts), Fraction(0))


def _format_number(value: Fraction) -> str:
    rounded = round(float(value), 2)
    return f"{rounded:g}"


def _format_measure(amount: Fraction, family: str, unit: str | None) -> str:
    if family in _BASE_UNIT:
        large_unit, threshold = _LARGE_UNIT[family]
        if amount >= threshold:
            return f"{_format_number(amount / Fraction(threshold))} {large_unit}"
        return f"{_format_number(amount)} {_BASE_UNIT[family]}"
    return f"{_format_number(amount)} {unit}"
