"""Schemas for user goals."""

from pydantic import BaseModel, Field
from typing import Dict, Optional


class GoalUpdateRequest(BaseModel):
    """Replace a user's goals; omitted or zero values fall back to defaults on read."""

    calorias_diarias: Optional[float] = Field(None, ge=0, examples=[2000], description="Daily calorie goal")
    agua_diaria_ml: Optional[float] = Field(None, ge=0, examples=[2500], description="Daily water goal in ml")
    peso_objetivo: Optional[float] = Field(None, ge=0, examples=[68.5], description="Target weight in kg")


class GoalResponse(BaseModel):
    """Effective goals of a user after defaults are applied."""

    usuario_id: int
    calorias_diarias: float
    agua_diaria_ml: float
    peso_objetivo: Optional[float] = None
    macros_alvo: Dict[str, int]
