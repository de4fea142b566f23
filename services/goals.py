"""Goal resolution and macro targets.

Users may leave any goal unset. Reads fall back to the configured defaults
for calories and water; weight has no default. Macro targets are derived
from the calorie goal with a fixed 30/45/25 protein/carb/fat split.
"""

from dataclasses import dataclass, asdict
from typing import Dict, Optional

from sqlalchemy.orm import Session

from core.config import settings
from core.dates import utcnow
from core.logger import get_logger
from core.repository import save
from database import models

logger = get_logger("services.goals")


@dataclass(frozen=True)
class GoalValues:
    calorias_diarias: float
    agua_diaria_ml: float
    peso_objetivo: Optional[float] = None

    def as_dict(self) -> dict:
        return asdict(self)


class GoalResolver:
    """Class-based goal resolver used across the app."""

    MACRO_RATIOS = {"protein": 0.30, "carbs": 0.45, "fat": 0.25}

    def __init__(self, default_calories: float, default_water_ml: float):
        self.default_calories = default_calories
        self.default_water_ml = default_water_ml

    def defaults(self) -> GoalValues:
        return GoalValues(self.default_calories, self.default_water_ml, None)

    def resolve(self, row: Optional[models.Goal]) -> GoalValues:
        """Fill unset or zero goal fields with the defaults."""
        if row is None:
            return self.defaults()
        return GoalValues(
            calorias_diarias=row.calorias_diarias or self.default_calories,
            agua_diaria_ml=row.agua_diaria_ml or self.default_water_ml,
            peso_objetivo=row.peso_objetivo or None,
        )

    def macro_targets(self, target_calories: float) -> Dict[str, int]:
        """Allocate macronutrient targets (grams) from a calorie target."""
        if not target_calories or target_calories <= 0:
            return {"protein": 0, "carbs": 0, "fat": 0}
        protein_g = target_calories * self.MACRO_RATIOS["protein"] / 4
        carbs_g = target_calories * self.MACRO_RATIOS["carbs"] / 4
        fat_g = target_calories * self.MACRO_RATIOS["fat"] / 9
        macros = {"protein": round(protein_g), "carbs": round(carbs_g), "fat": round(fat_g)}
        logger.debug("Macros calculated: %s", macros)
        return macros


def get_goal_row(db: Session, user_id: int) -> Optional[models.Goal]:
    return db.get(models.Goal, user_id)


def get_goals(db: Session, user_id: int) -> GoalValues:
    return goal_resolver.resolve(get_goal_row(db, user_id))


def upsert_goals(
    db: Session,
    user_id: int,
    calorias_diarias: Optional[float] = None,
    agua_diaria_ml: Optional[float] = None,
    peso_objetivo: Optional[float] = None,
) -> models.Goal:
    """Create or replace the single goal row of a user.

    Zero values are stored as null so they read back as "use the default".
    """
    row = get_goal_row(db, user_id)
    if row is None:
        row = models.Goal(usuario_id=user_id)
    row.calorias_diarias = calorias_diarias or None
    row.agua_diaria_ml = agua_diaria_ml or None
    row.peso_objetivo = peso_objetivo or None
    row.atualizado_em = utcnow()
    row = save(db, row)
    logger.info("Goals updated for user=%s", user_id)
    return row


# export singleton
goal_resolver = GoalResolver(settings.default_calorie_goal, settings.default_water_goal_ml)
__all__ = ["GoalValues", "GoalResolver", "goal_resolver", "get_goals", "upsert_goals"]
