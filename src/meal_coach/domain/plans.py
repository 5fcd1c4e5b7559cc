"""Meal plan models validated from generated output."""

from pydantic import BaseModel, ConfigDict, Field


class _PlanModel(BaseModel):
    model_config = ConfigDict(frozen=True, populate_by_name=True)


class MacroNutrients(_PlanModel):
    """Energy and macronutrients for a meal or a day."""

    calories: float = Field(default=0.0, ge=0.0)
    protein: float = Field(default=0.0, ge=0.0)
    carbohydrates: float = Field(default=0.0, ge=0.0)
    fat: float = Field(default=0.0, ge=0.0)

    def __add__(self, other: "MacroNutrients") -> "MacroNutrients":
        return MacroNutrients(
            calories=self.calories + other.calories,
            protein=self.protein + other.protein,
            carbohydrates=self.carbohydrates + other.carbohydrates,
            fat=self.fat + other.fat,
        )


class Meal(_PlanModel):
    """Single meal with recipe details."""

    name: str
    type: str
    description: str = ""
    estimated_cost: str | None = Field(default=None, alias="estimatedCost")
    macros: MacroNutrients
    ingredients: list[str] = Field(default_factory=list)
    instructions: list[str] = Field(default_factory=list)


class DailyPlan(_PlanModel):
    """Meals for one weekday and their aggregate totals."""

    day_of_week: str = Field(alias="dayOfWeek")
    meals: list[Meal] = Field(default_factory=list)
    daily_totals: MacroNutrients = Field(
        default_factory=MacroNutrients, alias="dailyTotals"
    )


class WeeklyPlan(_PlanModel):
    """Seven Monday-first days for one program week."""

    week_number: int = Field(alias="weekNumber", ge=0)
    plan: list[DailyPlan]


class ShoppingListItem(_PlanModel):
    """Consolidated ingredient line."""

    name: str
    quantity: str


class CategorizedShoppingList(_PlanModel):
    """Shopping items grouped under one store aisle."""

    category: str
    items: list[ShoppingListItem]


class GeneratedWeek(_PlanModel):
    """Raw week payload returned by the generator."""

    plan: list[DailyPlan]


class GeneratedMeals(_PlanModel):
    """Raw multi-meal payload returned by the generator."""

    meals: list[Meal]


class GeneratedShoppingList(_PlanModel):
    """Raw shopping list payload returned by the generator."""

    shopping_list: list[CategorizedShoppingList] = Field(alias="shoppingList")
