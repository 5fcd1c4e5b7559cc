"""Prompt and structured-output schema construction for plan generation."""

from dataclasses import dataclass

from meal_coach.domain.locale import WEEKDAYS, Locale
from meal_coach.domain.plans import DailyPlan, WeeklyPlan
from meal_coach.domain.profile import CookingLevel, UserProfile

MIN_LIGHT_MEAL_CALORIES = 100

_NUMBER = {"type": "number", "minimum": 0}

MACROS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "calories": _NUMBER,
        "protein": _NUMBER,
        "carbohydrates": _NUMBER,
        "fat": _NUMBER,
    },
    "required": ["calories", "protein", "carbohydrates", "fat"],
    "additionalProperties": False,
}

MEAL_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "name": {"type": "string"},
        "type": {"type": "string"},
        "description": {"type": "string"},
        "estimatedCost": {"anyOf": [{"type": "string"}, {"type": "null"}]},
        "macros": MACROS_SCHEMA,
        "ingredients": {"type": "array", "items": {"type": "string"}},
        "instructions": {"type": "array", "items": {"type": "string"}},
    },
    "required": [
        "name",
        "type",
        "description",
        "estimatedCost",
        "macros",
        "ingredients",
        "instructions",
    ],
    "additionalProperties": False,
}

DAILY_PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "dayOfWeek": {"type": "string"},
        "meals": {"type": "array", "items": MEAL_SCHEMA},
        "dailyTotals": MACROS_SCHEMA,
    },
    "required": ["dayOfWeek", "meals", "dailyTotals"],
    "additionalProperties": False,
}

WEEKLY_PLAN_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"plan": {"type": "array", "items": DAILY_PLAN_SCHEMA}},
    "required": ["plan"],
    "additionalProperties": False,
}

MEALS_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {"meals": {"type": "array", "items": MEAL_SCHEMA}},
    "required": ["meals"],
    "additionalProperties": False,
}

SHOPPING_LIST_SCHEMA: dict[str, object] = {
    "type": "object",
    "properties": {
        "shoppingList": {
            "type": "array",
            "items": {
                "type": "object",
                "properties": {
                    "category": {"type": "string"},
                    "items": {
                        "type": "array",
                        "items": {
                            "type": "object",
                            "properties": {
                                "name": {"type": "string"},
                                "quantity": {"type": "string"},
                            },
                            "required": ["name", "quantity"],
                            "additionalProperties": False,
                        },
                    },
                },
                "required": ["category", "items"],
                "additionalProperties": False,
            },
        }
    },
    "required": ["shoppingList"],
    "additionalProperties": False,
}


@dataclass(frozen=True)
class GenerationRequest:
    """Instruction text plus the schema the reply must satisfy."""

    name: str
    prompt: str
    schema: dict[str, object]


@dataclass(frozen=True)
class RegenerationOptions:
    """Per-request overrides for partial regeneration."""

    prompt: str = ""
    budget: float | None = None
    cooking_level: CookingLevel | None = None
    max_prep_time: int | None = None
    meals_to_add: int | None = None


_TEXT: dict[Locale, dict[str, str]] = {
    "en": {
        "coach_role": (
            "Role: You are an expert AI nutrition coach creating a detailed, "
            "personalized weekly meal plan."
        ),
        "short_role": "Role: Expert nutrition coach.",
        "profile_header": "User context:",
        "sex": "Sex",
        "age": "Age",
        "height": "Height (cm)",
        "weight": "Weight (kg)",
        "activity": "Activity level",
        "goal": "Goal",
        "meals_per_day": "Meals per day",
        "bmr": "Basal metabolic rate (BMR)",
        "tdee": "Total daily energy expenditure (TDEE)",
        "target": "Daily calorie target",
        "budget": "Daily meal budget (EUR)",
        "cooking": "Cooking skill",
        "prep_week_lunch": "Max prep time, weekday lunch (min)",
        "prep_week_dinner": "Max prep time, weekday dinner (min)",
        "prep_weekend_lunch": "Max prep time, weekend lunch (min)",
        "prep_weekend_dinner": "Max prep time, weekend dinner (min)",
        "preferences": "Preferences/allergies",
        "notes": "Likes and dislikes",
        "remarks": "Specific remarks/constraints",
        "instruction": "User instruction",
        "none": "None",
        "request_prefs": "Preferences for this request",
        "max_prep_request": "Max preparation time for this request (min)",
        "existing_meals": "Existing meals",
        "consumed": "Calories already planned",
        "week_task": (
            "Task: Generate a varied and balanced plan for 7 days.\n"
            "- Each day must contain exactly {meals} meals.\n"
            "- Respect the maximum preparation times for weekday and weekend "
            "lunches and dinners.\n"
            "- Take the specific remarks and constraints into account.\n"
            "- Name meal types {labels}. Number multiple snacks "
            "(Snack 1, Snack 2).\n"
            "- Each day's calories must be very close to {target} kcal.\n"
            "- For each meal give name, type, description, estimated cost per "
            "person, ingredients with quantities, steps and macros.\n"
            "- Start on Monday and name days in English: {days}."
        ),
        "day_task": (
            "Task: Generate a complete plan for ONE day: {day}.\n"
            "- Include exactly {meals} meals.\n"
            "- Total calories must be very close to {target} kcal.\n"
            "- Give every meal its full details and macros."
        ),
        "replace_task": (
            "Task: Generate ONE new meal of type \"{type}\" to replace "
            "\"{name}\".\n"
            "- Aim for about {target} kcal for this meal."
        ),
        "add_task": (
            "Task: Generate ONE new meal, a snack or a small meal, with a "
            "fitting type.\n"
            "- Aim for about {target} kcal. If the day is already over target, "
            "keep it a very light snack."
        ),
        "complete_task": (
            "Task: Generate new meals to fill a deficit of {deficit} kcal.\n"
            "- {count}\n"
            "- The new meals' total calories must be very close to the deficit."
        ),
        "count_fixed": "Generate exactly {count} meal(s).",
        "count_free": "Choose the best number of meals to add.",
        "default_replace": "I don't like this dish, suggest something else.",
        "default_add": "Suggest a light snack or a small meal.",
        "default_complete": "Suggest something to complete my day.",
        "default_day": "I want completely different meals for this day.",
        "shopping_task": (
            "Role: You are a shopping assistant. Consolidate this week's "
            "ingredients.\n"
            "1. Merge identical ingredients and sum quantities "
            "('1 onion' + '2 onions' = '3 onions', 200g + 300g = 500g). Keep "
            "incompatible units as separate items.\n"
            "2. Put each item in one aisle: {aisles}.\n"
            "Ingredients:\n{ingredients}"
        ),
        "output": (
            "Output: return only a valid JSON object matching the provided "
            "schema, with no text outside it."
        ),
        "labels": "Breakfast, Lunch, Dinner, Snack",
    },
    "fr": {
        "coach_role": (
            "Rôle : Tu es un coach nutritionnel expert en IA qui crée un plan "
            "de repas hebdomadaire détaillé et personnalisé."
        ),
        "short_role": "Rôle : Coach nutritionnel expert.",
        "profile_header": "Contexte utilisateur :",
        "sex": "Sexe",
        "age": "Âge",
        "height": "Taille (cm)",
        "weight": "Poids (kg)",
        "activity": "Niveau d'activité",
        "goal": "Objectif",
        "meals_per_day": "Repas par jour",
        "bmr": "Métabolisme de base (BMR)",
        "tdee": "Dépense énergétique journalière (TDEE)",
        "target": "Objectif calorique quotidien",
        "budget": "Budget repas journalier (EUR)",
        "cooking": "Niveau de cuisine",
        "prep_week_lunch": "Préparation max, déjeuner semaine (min)",
        "prep_week_dinner": "Préparation max, dîner semaine (min)",
        "prep_weekend_lunch": "Préparation max, déjeuner week-end (min)",
        "prep_weekend_dinner": "Préparation max, dîner week-end (min)",
        "preferences": "Préférences/allergies",
        "notes": "Goûts et aversions",
        "remarks": "Remarques/contraintes spécifiques",
        "instruction": "Instruction utilisateur",
        "none": "Aucun",
        "request_prefs": "Préférences pour cette demande",
        "max_prep_request": "Temps de préparation max pour cette demande (min)",
        "existing_meals": "Repas existants",
        "consumed": "Calories déjà prévues",
        "week_task": (
            "Tâche : Génère un plan varié et équilibré pour 7 jours.\n"
            "- Chaque jour contient exactement {meals} repas.\n"
            "- Respecte les temps de préparation maximum des déjeuners et "
            "dîners de semaine et de week-end.\n"
            "- Tiens compte des remarques et contraintes spécifiques.\n"
            "- Nomme les types de repas {labels}. Numérote les collations "
            "multiples (Collation 1, Collation 2).\n"
            "- Le total calorique de chaque jour doit être très proche de "
            "{target} kcal.\n"
            "- Pour chaque repas, donne nom, type, description, coût estimé "
            "par personne, ingrédients avec quantités, étapes et macros.\n"
            "- Commence par lundi et nomme les jours en français : {days}."
        ),
        "day_task": (
            "Tâche : Génère un plan complet pour UN SEUL jour : {day}.\n"
            "- Inclus exactement {meals} repas.\n"
            "- Le total calorique doit être très proche de {target} kcal.\n"
            "- Donne tous les détails et macros de chaque repas."
        ),
        "replace_task": (
            "Tâche : Génère UN SEUL repas de type « {type} » pour remplacer "
            "« {name} ».\n"
            "- Vise environ {target} kcal pour ce repas."
        ),
        "add_task": (
            "Tâche : Génère UN SEUL nouveau repas, collation ou petit repas, "
            "avec un type adapté.\n"
            "- Vise environ {target} kcal. Si la journée dépasse déjà "
            "l'objectif, propose une collation très légère."
        ),
        "complete_task": (
            "Tâche : Génère de nouveaux repas pour combler un déficit de "
            "{deficit} kcal.\n"
            "- {count}\n"
            "- Le total calorique des nouveaux repas doit être très proche du "
            "déficit."
        ),
        "count_fixed": "Génère exactement {count} repas.",
        "count_free": "Choisis le nombre de repas le plus adapté.",
        "default_replace": "Je n'aime pas ce plat, propose-moi autre chose.",
        "default_add": "Propose une collation ou un petit repas léger.",
        "default_complete": "Suggère quelque chose pour compléter ma journée.",
        "default_day": "Je veux des repas complètement différents pour ce jour.",
        "shopping_task": (
            "Rôle : Tu es un assistant de courses. Consolide les ingrédients "
            "de la semaine.\n"
            "1. Fusionne les ingrédients identiques en additionnant les "
            "quantités ('1 oignon' + '2 oignons' = '3 oignons', 200g + 300g = "
            "500g). Garde les unités incompatibles sur des lignes séparées.\n"
            "2. Range chaque article dans un rayon : {aisles}.\n"
            "Ingrédients :\n{ingredients}"
        ),
        "output": (
            "Format de sortie : retourne uniquement un objet JSON valide "
            "conforme au schéma fourni, sans texte autour."
        ),
        "labels": "Petit-déjeuner, Déjeuner, Dîner, Collation",
    },
}

AISLES: dict[Locale, tuple[str, ...]] = {
    "en": (
        "Fruits & Vegetables",
        "Meat & Fish",
        "Dairy & Eggs",
        "Bakery",
        "Pantry",
        "Frozen",
        "Beverages",
        "Other",
    ),
    "fr": (
        "Fruits & Légumes",
        "Viandes & Poissons",
        "Produits Laitiers & Œufs",
        "Boulangerie",
        "Épicerie",
        "Surgelés",
        "Boissons",
        "Autres",
    ),
}


def other_meals_calories(day: DailyPlan, excluded_index: int) -> float:
    """Return calories of every meal except the one at ``excluded_index``."""
    return sum(
        meal.macros.calories
        for index, meal in enumerate(day.meals)
        if index != excluded_index
    )


def planned_calories(day: DailyPlan) -> float:
    """Return calories of every meal in the day."""
    return sum(meal.macros.calories for meal in day.meals)


def replacement_target(profile: UserProfile, day: DailyPlan, index: int) -> float:
    """Return the residual calories for a replacement meal, possibly negative."""
    return profile.target_calories - other_meals_calories(day, index)


def addition_target(profile: UserProfile, day: DailyPlan) -> float:
    """Return the residual calories for an added meal, possibly negative."""
    return profile.target_calories - planned_calories(day)


def build_week_request(
    profile: UserProfile, locale: Locale, custom_prompt: str | None = None
) -> GenerationRequest:
    """Build the request for a full seven-day plan."""
    text = _TEXT[locale]
    task = text["week_task"].format(
        meals=profile.meals_per_day,
        labels=text["labels"],
        target=_kcal(profile.target_calories),
        days=", ".join(WEEKDAYS[locale]),
    )
    lines = [text["coach_role"], "", *_profile_block(profile, locale)]
    if custom_prompt:
        lines.append(f"- {text['instruction']}: {custom_prompt}")
    lines.extend(["", task, "", text["output"]])
    return GenerationRequest(
        name="weekly_plan", prompt="\n".join(lines), schema=WEEKLY_PLAN_SCHEMA
    )


def build_day_request(
    profile: UserProfile,
    locale: Locale,
    day_label: str,
    options: RegenerationOptions,
) -> GenerationRequest:
    """Build the request that regenerates one whole day."""
    text = _TEXT[locale]
    task = text["day_task"].format(
        day=day_label,
        meals=profile.meals_per_day,
        target=_kcal(profile.target_calories),
    )
    lines = [
        text["short_role"],
        *_profile_block(profile, locale),
        *_options_block(profile, locale, options),
        f"- {text['instruction']}: \"{options.prompt or text['default_day']}\"",
        "",
        task,
        "",
        text["output"],
    ]
    return GenerationRequest(
        name="daily_plan", prompt="\n".join(lines), schema=DAILY_PLAN_SCHEMA
    )


def build_meal_replacement_request(
    profile: UserProfile,
    locale: Locale,
    day: DailyPlan,
    index: int,
    options: RegenerationOptions,
) -> GenerationRequest:
    """Build the request that replaces the meal at ``index``."""
    text = _TEXT[locale]
    meal = day.meals[index]
    others = [m.name for i, m in enumerate(day.meals) if i != index]
    target = replacement_target(profile, day, index)
    task = text["replace_task"].format(
        type=meal.type,
        name=meal.name,
        target=_kcal(max(MIN_LIGHT_MEAL_CALORIES, target)),
    )
    lines = [
        text["short_role"],
        *_profile_block(profile, locale),
        *_options_block(profile, locale, options),
        *_day_block(profile, locale, others, other_meals_calories(day, index)),
        f"- {text['instruction']}: \"{options.prompt or text['default_replace']}\"",
        "",
        task,
        "",
        text["output"],
    ]
    return GenerationRequest(
        name="meal", prompt="\n".join(lines), schema=MEAL_SCHEMA
    )


def build_meal_addition_request(
    profile: UserProfile,
    locale: Locale,
    day: DailyPlan,
    options: RegenerationOptions,
) -> GenerationRequest:
    """Build the request that adds one meal to a day."""
    text = _TEXT[locale]
    target = addition_target(profile, day)
    task = text["add_task"].format(
        target=_kcal(max(MIN_LIGHT_MEAL_CALORIES, target))
    )
    lines = [
        text["short_role"],
        *_profile_block(profile, locale),
        *_options_block(profile, locale, options),
        *_day_block(
            profile, locale, [m.name for m in day.meals], planned_calories(day)
        ),
        f"- {text['instruction']}: \"{options.prompt or text['default_add']}\"",
        "",
        task,
        "",
        text["output"],
    ]
    return GenerationRequest(
        name="meal", prompt="\n".join(lines), schema=MEAL_SCHEMA
    )


def build_day_completion_request(
    profile: UserProfile,
    locale: Locale,
    day: DailyPlan,
    options: RegenerationOptions,
) -> GenerationRequest | None:
    """Build the request that fills a day's deficit, or None if there is none."""
    deficit = addition_target(profile, day)
    if deficit <= 0:
        return None
    text = _TEXT[locale]
    count = (
        text["count_fixed"].format(count=options.meals_to_add)
        if options.meals_to_add
        else text["count_free"]
    )
    task = text["complete_task"].format(deficit=_kcal(deficit), count=count)
    lines = [
        text["short_role"],
        *_profile_block(profile, locale),
        *_options_block(profile, locale, options),
        *_day_block(
            profile, locale, [m.name for m in day.meals], planned_calories(day)
        ),
        f"- {text['instruction']}: \"{options.prompt or text['default_complete']}\"",
        "",
        task,
        "",
        text["output"],
    ]
    return GenerationRequest(
        name="meals", prompt="\n".join(lines), schema=MEALS_SCHEMA
    )


def collect_ingredients(plan: WeeklyPlan) -> list[str]:
    """Return every non-empty ingredient line of a plan, in plan order."""
    return [
        ingredient.strip()
        for day in plan.plan
        for meal in day.meals
        for ingredient in meal.ingredients
        if ingredient.strip()
    ]


def build_shopping_list_request(
    plan: WeeklyPlan, locale: Locale
) -> GenerationRequest | None:
    """Build the shopping list request, or None when there is nothing to buy."""
    ingredients = collect_ingredients(plan)
    if not ingredients:
        return None
    text = _TEXT[locale]
    prompt = "\n".join(
        [
            text["shopping_task"].format(
                aisles=", ".join(AISLES[locale]),
                ingredients="\n".join(ingredients),
            ),
            "",
            text["output"],
        ]
    )
    return GenerationRequest(
        name="shopping_list", prompt=prompt, schema=SHOPPING_LIST_SCHEMA
    )


def _profile_block(profile: UserProfile, locale: Locale) -> list[str]:
    text = _TEXT[locale]
    rows = [
        (text["sex"], profile.sex),
        (text["age"], profile.age),
        (text["height"], f"{profile.height_cm:g}"),
        (text["weight"], f"{profile.weight_kg:g}"),
        (text["activity"], profile.activity_level),
        (text["goal"], profile.goal),
        (text["meals_per_day"], profile.meals_per_day),
        (text["bmr"], _kcal(profile.bmr)),
        (text["tdee"], _kcal(profile.tdee)),
        (text["target"], _kcal(profile.target_calories)),
        (text["budget"], f"{profile.daily_budget:g}"),
        (text["cooking"], profile.cooking_level),
        (text["prep_week_lunch"], profile.prep_times.weekday_lunch),
        (text["prep_week_dinner"], profile.prep_times.weekday_dinner),
        (text["prep_weekend_lunch"], profile.prep_times.weekend_lunch),
        (text["prep_weekend_dinner"], profile.prep_times.weekend_dinner),
        (text["preferences"], profile.preferences or text["none"]),
        (text["notes"], profile.notes or text["none"]),
        (text["remarks"], profile.remarks or text["none"]),
    ]
    return [text["profile_header"], *(f"- {label}: {value}" for label, value in rows)]


def _options_block(
    profile: UserProfile, locale: Locale, options: RegenerationOptions
) -> list[str]:
    text = _TEXT[locale]
    budget = options.budget or profile.daily_budget
    cooking = options.cooking_level or profile.cooking_level
    lines = [
        f"{text['request_prefs']}: {text['budget']} {budget:g}, "
        f"{text['cooking']} {cooking}."
    ]
    if options.max_prep_time:
        lines.append(f"- {text['max_prep_request']}: {options.max_prep_time}")
    return lines


def _day_block(
    profile: UserProfile, locale: Locale, meal_names: list[str], calories: float
) -> list[str]:
    text = _TEXT[locale]
    return [
        f"- {text['existing_meals']}: {', '.join(meal_names) or text['none']}",
        f"- {text['consumed']}: {_kcal(calories)}",
        f"- {text['target']}: {_kcal(profile.target_calories)}",
    ]


def _kcal(value: float) -> str:
    return f"{value:.0f}"
