"""Entry logging API router.

Creates nutrition, weight and hydration entries for the requester or a
user it may view, soft-deletes entries and lists recent meals.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import SessionContext, get_session_context, require_view_access
from core.logger import get_logger
from database.deps import get_db_read, get_db_write
from schemas import (
    EntryDeletedResponse,
    HydrationEntryCreate,
    HydrationEntryResponse,
    NutritionEntryCreate,
    NutritionEntryResponse,
    WeightEntryCreate,
    WeightEntryResponse,
)
from services import entries

logger = get_logger("api.entries")
router = APIRouter(prefix="/api/entries", tags=["entries"])


@router.post("/nutrition", response_model=NutritionEntryResponse, status_code=201)
def create_nutrition_entry(
    payload: NutritionEntryCreate,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    target = require_view_access(db, session, payload.usuario_id)
    return entries.log_nutrition(
        db,
        target.id,
        calorias=payload.calorias,
        proteinas=payload.proteinas,
        carboidratos=payload.carboidratos,
        gorduras=payload.gorduras,
        descricao_ia=payload.descricao_ia,
        data_registro=payload.data_registro,
    )


@router.post("/weight", response_model=WeightEntryResponse, status_code=201)
def create_weight_entry(
    payload: WeightEntryCreate,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Log a weight sample; the user's current weight follows it."""
    target = require_view_access(db, session, payload.usuario_id)
    return entries.log_weight(
        db, target.id, payload.peso_kg, observacoes=payload.observacoes, data_registro=payload.data_registro
    )


@router.post("/hydration", response_model=HydrationEntryResponse, status_code=201)
def create_hydration_entry(
    payload: HydrationEntryCreate,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    target = require_view_access(db, session, payload.usuario_id)
    return entries.log_hydration(
        db, target.id, payload.quantidade_ml, tipo_liquido=payload.tipo_liquido, horario=payload.horario
    )


@router.get("/nutrition/recent", response_model=List[NutritionEntryResponse])
def recent_meals(
    user_id: Optional[int] = Query(None, description="Viewed user; defaults to the requester"),
    limit: int = Query(5, ge=1, le=50),
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
):
    """Newest meals of the viewed user, soft-deleted ones excluded."""
    target = require_view_access(db, session, user_id)
    return entries.recent_meals(db, target.id, limit=limit)


@router.delete("/{domain}/{entry_id}", response_model=EntryDeletedResponse)
def delete_entry(
    domain: str,
    entry_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Soft-delete an entry.

    Raises:
        ValidationError: If `domain` is not nutrition, weight or hydration.
        NotFoundError: If the entry is missing or already deleted.
        PermissionDeniedError: If the entry's owner is outside the requester's scope.
    """
    parsed = entries.parse_domain(domain)
    entry = entries.delete_entry(db, session.user, parsed, entry_id)
    return {"id": entry.id, "dominio": parsed.value, "deletado_em": entry.deletado_em}
