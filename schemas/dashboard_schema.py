"""Schemas for dashboard responses."""

from pydantic import BaseModel, Field
from typing import Dict, List, Optional


class DashboardSummary(BaseModel):
    """Summary card numbers computed over the last 30 days."""

    peso_atual: Optional[float] = None
    ultimo_peso: Optional[float] = None
    meta_peso: Optional[float] = None
    meta_calorias: float
    meta_agua: float
    calorias_hoje: float
    agua_hoje: float
    registros_peso_30_dias: int
    registros_nutricao_30_dias: int
    registros_agua_30_dias: int


class DashboardResponse(BaseModel):
    """Full dashboard payload for one viewed user."""

    usuario_id: int
    periodos: Dict[str, Dict[str, str]]
    resumo: DashboardSummary
    metas: dict
    macros_alvo: Dict[str, int]
    nutricao: List[dict] = Field(..., description="Gap-filled daily nutrition aggregates")
    peso: List[dict] = Field(..., description="Gap-filled daily weight aggregates (last sample per day)")
    hidratacao: List[dict] = Field(..., description="Gap-filled daily hydration aggregates")
    metricas: dict = Field(..., description="Goal percentages, trends, hydration statistics, insights and achievements")
