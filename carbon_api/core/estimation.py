"""Carbon Estimation — mocked dish-to-ingredients decision table.

Invariants:
    - PURE and deterministic: same dish string, same Estimate
    - ESTIMATION_RULES evaluated in order, first match wins, DEFAULT_RULE always matches
    - estimated_carbon_kg = sum of ingredient values, rounded half away from zero to 2 places

Design Decisions:
    - Rules are data: adding a dish is one table row
    - Image estimation does not look at the bytes yet; PLACEHOLDER_IMAGE_DISH stands in
      for a vision model
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Callable

from carbon_api.core.domain_types import Estimate, Ingredient

PLACEHOLDER_IMAGE_DISH = "Chicken Biryani"


@dataclass(frozen=True)
class EstimationRule:
    """One row of the decision table."""
    name: str
    matches: Callable[[str], bool]
    ingredients: tuple[Ingredient, ...]


def _contains(fragment: str) -> Callable[[str], bool]:
    return lambda dish: fragment in dish.lower()


ESTIMATION_RULES: tuple[EstimationRule, ...] = (
    EstimationRule(
        name="chicken biryani",
        matches=_contains("chicken biryani"),
        ingredients=(
            Ingredient(name="Rice", carbon_kg=1.1),
            Ingredient(name="Chicken", carbon_kg=2.5),
            Ingredient(name="Spices", carbon_kg=0.2),
            Ingredient(name="Oil", carbon_kg=0.4),
        ),
    ),
    EstimationRule(
        name="salad",
        matches=_contains("salad"),
        ingredients=(
            Ingredient(name="Lettuce", carbon_kg=0.1),
            Ingredient(name="Tomato", carbon_kg=0.2),
            Ingredient(name="Cucumber", carbon_kg=0.1),
        ),
    ),
)

DEFAULT_RULE = EstimationRule(
    name="default",
    matches=lambda dish: True,
    ingredients=(
        Ingredient(name="Ingredient1", carbon_kg=0.5),
        Ingredient(name="Ingredient2", carbon_kg=0.3),
    ),
)


def select_rule(dish: str) -> EstimationRule:
    """First rule whose predicate accepts the dish, else DEFAULT_RULE."""
    return next(
        (rule for rule in ESTIMATION_RULES if rule.matches(dish)), DEFAULT_RULE,
    )


def round_carbon(value: float) -> float:
    """Round to 2 decimals, half away from zero, on the shortest decimal repr."""
    return float(
        Decimal(repr(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP),
    )


def estimate_carbon_from_dish(dish: str) -> Estimate:
    """Estimate the footprint of a dish from its (already validated) name."""
    ingredients = select_rule(dish).ingredients
    total = sum(ingredient.carbon_kg for ingredient in ingredients)
    return Estimate(
        dish=dish,
        estimated_carbon_kg=round_carbon(total),
        ingredients=ingredients,
    )


def estimate_carbon_from_image(content: bytes) -> Estimate:
    """Estimate the footprint of a photographed dish."""
    return estimate_carbon_from_dish(PLACEHOLDER_IMAGE_DISH)
