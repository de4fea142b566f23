"""Schemas for nutrition, weight and hydration entries."""

from datetime import datetime
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class NutritionEntryCreate(BaseModel):
    """Payload for logging a meal."""

    usuario_id: Optional[int] = Field(None, examples=[3], description="Owner of the entry; defaults to the requester")
    calorias: Optional[float] = Field(None, ge=0, examples=[650], description="Calories (kcal)")
    proteinas: Optional[float] = Field(None, ge=0, examples=[35], description="Protein (g)")
    carboidratos: Optional[float] = Field(None, ge=0, examples=[70], description="Carbohydrates (g)")
    gorduras: Optional[float] = Field(None, ge=0, examples=[20], description="Fat (g)")
    descricao_ia: Optional[str] = Field(None, examples=["Arroz, feijão e frango grelhado"], description="Meal description")
    data_registro: Optional[datetime] = Field(None, examples=["2024-05-01T12:30:00Z"], description="When the meal was eaten; defaults to now")


class WeightEntryCreate(BaseModel):
    """Payload for logging a weight sample."""

    usuario_id: Optional[int] = Field(None, examples=[3], description="Owner of the entry; defaults to the requester")
    peso_kg: float = Field(..., gt=0, le=500, examples=[72.4], description="Weight in kilograms")
    observacoes: Optional[str] = Field(None, examples=["Em jejum"], description="Free-text notes")
    data_registro: Optional[datetime] = Field(None, examples=["2024-05-01T07:00:00Z"], description="Measurement time; defaults to now")


class HydrationEntryCreate(BaseModel):
    """Payload for logging a drink."""

    usuario_id: Optional[int] = Field(None, examples=[3], description="Owner of the entry; defaults to the requester")
    quantidade_ml: int = Field(..., gt=0, le=10000, examples=[300], description="Amount in millilitres")
    tipo_liquido: Optional[str] = Field(None, examples=["agua"], description="Kind of drink")
    horario: Optional[datetime] = Field(None, examples=["2024-05-01T09:15:00Z"], description="Drink time; defaults to now")


class NutritionEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    usuario_id: int
    data_registro: datetime
    calorias: Optional[float] = None
    proteinas: Optional[float] = None
    carboidratos: Optional[float] = None
    gorduras: Optional[float] = None
    descricao_ia: Optional[str] = None


class WeightEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    usuario_id: int
    data_registro: datetime
    peso_kg: float
    observacoes: Optional[str] = None


class HydrationEntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    usuario_id: int
    horario: datetime
    quantidade_ml: int
    tipo_liquido: Optional[str] = None


class EntryDeletedResponse(BaseModel):
    """Result of a soft delete."""

    id: int
    dominio: str
    deletado_em: datetime
