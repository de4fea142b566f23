"""Schemas for report generation and lifecycle."""

from datetime import date, datetime
from pydantic import BaseModel, ConfigDict, Field, model_validator
from typing import List, Optional

from database.models import ReportStatus, ReportType


class ReportCreateRequest(BaseModel):
    """Payload for generating a report over an inclusive date range."""

    usuario_id: Optional[int] = Field(None, examples=[3], description="Viewed user; defaults to the requester")
    tipo: ReportType = Field(ReportType.COMPLETO, examples=["completo"], description="completo, nutricional, peso or hidratacao")
    data_inicio: date = Field(..., examples=["2024-05-01"], description="First day of the report (local date)")
    data_fim: date = Field(..., examples=["2024-05-07"], description="Last day of the report (local date)")

    @model_validator(mode="after")
    def check_range(self):
        if self.data_fim < self.data_inicio:
            raise ValueError("data_fim must not be before data_inicio")
        return self


class ReportStatusUpdate(BaseModel):
    status_envio: ReportStatus = Field(..., examples=["enviado"], description="pendente, enviado or falha")


class ReportResponse(BaseModel):
    """Stored report snapshot."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    usuario_id: int
    tipo: str
    data_inicio: date
    data_fim: date
    dados_nutricionais: dict
    insights: Optional[str] = None
    comparacao_semanal: Optional[dict] = None
    status_envio: ReportStatus
    criado_em: datetime
    enviado_em: Optional[datetime] = None


class ReportListResponse(BaseModel):
    total: int
    relatorios: List[ReportResponse]
