"""Entry logging: create, soft-delete and list nutrition, weight and hydration rows."""

from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session

from core.dates import utcnow
from core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from core.logger import get_logger
from core.repository import SoftDeleteRepository, save
from database import models
from services.collectors import DOMAINS, Domain
from services.role_gate import can_view

logger = get_logger("services.entries")


def _as_naive_utc(value: Optional[datetime]) -> datetime:
    if value is None:
        return utcnow()
    if value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


def parse_domain(value) -> Domain:
    """Accept either the enum, its value or the English route name."""
    if isinstance(value, Domain):
        return value
    aliases = {"nutrition": Domain.NUTRITION, "weight": Domain.WEIGHT, "hydration": Domain.HYDRATION}
    key = str(value).strip().lower()
    if key in aliases:
        return aliases[key]
    try:
        return Domain(key)
    except ValueError:
        raise ValidationError(f"Unknown entry domain {value!r}", field="domain")


def log_nutrition(
    db: Session,
    user_id: int,
    calorias: Optional[float] = None,
    proteinas: Optional[float] = None,
    carboidratos: Optional[float] = None,
    gorduras: Optional[float] = None,
    descricao_ia: Optional[str] = None,
    data_registro: Optional[datetime] = None,
) -> models.NutritionEntry:
    entry = models.NutritionEntry(
        usuario_id=user_id,
        calorias=calorias,
        proteinas=proteinas,
        carboidratos=carboidratos,
        gorduras=gorduras,
        descricao_ia=descricao_ia,
        data_registro=_as_naive_utc(data_registro),
    )
    entry = save(db, entry)
    logger.info("Nutrition entry %s logged for user=%s", entry.id, user_id)
    return entry


def log_weight(
    db: Session,
    user_id: int,
    peso_kg: float,
    observacoes: Optional[str] = None,
    data_registro: Optional[datetime] = None,
) -> models.WeightEntry:
    """Store a weight sample and mirror it onto the user's current weight."""
    if peso_kg is None or peso_kg <= 0:
        raise ValidationError("Weight must be positive", field="peso_kg")
    entry = models.WeightEntry(
        usuario_id=user_id,
        peso_kg=peso_kg,
        observacoes=observacoes,
        data_registro=_as_naive_utc(data_registro),
    )
    db.add(entry)
    user = db.get(models.User, user_id)
    if user is not None:
        user.peso_atual_kg = peso_kg
        user.atualizado_em = utcnow()
    db.commit()
    db.refresh(entry)
    logger.info("Weight entry %s logged for user=%s (%.1f kg)", entry.id, user_id, peso_kg)
    return entry


def log_hydration(
    db: Session,
    user_id: int,
    quantidade_ml: int,
    tipo_liquido: Optional[str] = None,
    horario: Optional[datetime] = None,
) -> models.HydrationEntry:
    if quantidade_ml is None or quantidade_ml <= 0:
        raise ValidationError("Amount must be positive", field="quantidade_ml")
    entry = models.HydrationEntry(
        usuario_id=user_id,
        quantidade_ml=quantidade_ml,
        tipo_liquido=tipo_liquido,
        horario=_as_naive_utc(horario),
    )
    entry = save(db, entry)
    logger.info("Hydration entry %s logged for user=%s (%s ml)", entry.id, user_id, quantidade_ml)
    return entry


def delete_entry(db: Session, viewer, domain, entry_id: int):
    """Soft-delete an entry the viewer is allowed to see.

    Raises:
        NotFoundError: If the entry does not exist or is already deleted.
        PermissionDeniedError: If the entry belongs to a user outside the
            viewer's scope.
    """
    spec = DOMAINS[parse_domain(domain)]
    repo = SoftDeleteRepository(spec.model, db)
    entry = repo.get_live(entry_id)
    if entry is None:
        raise NotFoundError(spec.model.__name__, entry_id)
    owner = db.get(models.User, entry.usuario_id)
    if not can_view(viewer, owner):
        raise PermissionDeniedError(target_id=entry.usuario_id)
    repo.soft_delete(entry)
    logger.info("%s %s soft-deleted by user=%s", spec.model.__name__, entry_id, viewer.id)
    return entry


def recent_meals(db: Session, user_id: int, limit: int = 5) -> List[models.NutritionEntry]:
    """Newest live nutrition entries of a user."""
    return SoftDeleteRepository(models.NutritionEntry, db).list_for_owner(user_id, limit=limit)
