"""User management: visibility listing, dependents, managed accounts and passwords.

Every operation receives the requesting user explicitly and applies the
role gate before touching other accounts.
"""

from datetime import timedelta
from typing import Dict, List, Optional

import bcrypt
from sqlalchemy.orm import Session

from core.dates import utcnow
from core.exceptions import (
    DependentLimitError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from core.logger import get_logger
from database import models
from database.models import UserRole
from services.role_gate import can_manage_dependents, parse_role, visible_users

logger = get_logger("services.user_management")

MIN_PASSWORD_LENGTH = 6
MANAGED_ROLES = (UserRole.CLIENTE, UserRole.GESTOR)
ACTIVITY_WINDOW_DAYS = 30


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))


def normalize_email(email: str) -> str:
    normalized = (email or "").strip().lower()
    if not normalized or "@" not in normalized:
        raise ValidationError("Invalid email address", field="email")
    return normalized


def _ensure_email_free(db: Session, email: str) -> None:
    if db.query(models.User).filter(models.User.email == email).first() is not None:
        raise ValidationError(f"Email {email} is already registered", field="email")


def _role_value(user) -> Optional[str]:
    role = parse_role(user.tipo_usuario)
    return role.value if role else None


def _active_principals(db: Session) -> Dict[int, models.User]:
    """Map user id to the principal of its active link."""
    rows = (
        db.query(models.UserLink, models.User)
        .join(models.User, models.User.id == models.UserLink.usuario_principal_id)
        .filter(models.UserLink.ativo.is_(True))
        .order_by(models.UserLink.data_vinculo.asc())
        .all()
    )
    return {link.usuario_id: principal for link, principal in rows}


def user_to_dict(user, principal=None) -> dict:
    return {
        "id": user.id,
        "nome_completo": user.nome_completo,
        "email": user.email,
        "celular": user.celular,
        "tipo_usuario": _role_value(user),
        "plano_id": user.plano_id,
        "peso_atual_kg": user.peso_atual_kg,
        "responsavel_nome": principal.nome_completo if principal is not None else None,
        "responsavel_tipo": _role_value(principal) if principal is not None else None,
    }


def get_user(db: Session, user_id: int) -> models.User:
    user = db.get(models.User, user_id)
    if user is None:
        raise NotFoundError("User", user_id)
    return user


def list_visible_users(db: Session, viewer) -> List[dict]:
    """Users the viewer may select, self first, with their principal."""
    candidates = db.query(models.User).order_by(models.User.nome_completo.asc(), models.User.id.asc()).all()
    principals = _active_principals(db)
    return [user_to_dict(user, principals.get(user.id)) for user in visible_users(viewer, candidates)]


def count_active_dependents(db: Session, principal_id: int) -> int:
    return (
        db.query(models.UserLink)
        .filter(
            models.UserLink.usuario_principal_id == principal_id,
            models.UserLink.tipo_vinculo == UserRole.DEPENDENTE.value,
            models.UserLink.ativo.is_(True),
        )
        .count()
    )


def create_dependent(
    db: Session,
    requester,
    nome_completo: str,
    email: str,
    celular: Optional[str] = None,
) -> models.User:
    """Create a dependent linked to the requester, within the plan limit.

    Raises:
        PermissionDeniedError: If the requester is neither gestor nor socio.
        DependentLimitError: If the requester's plan is already full.
        ValidationError: If the email is invalid or taken.
    """
    if not can_manage_dependents(requester.tipo_usuario):
        raise PermissionDeniedError("Only gestor or socio accounts can add dependents", target_id=requester.id)

    plan = db.get(models.Plan, requester.plano_id) if requester.plano_id else None
    max_allowed = plan.max_dependentes if plan is not None else None
    if max_allowed is not None and count_active_dependents(db, requester.id) >= max_allowed:
        raise DependentLimitError(max_allowed)

    email = normalize_email(email)
    _ensure_email_free(db, email)

    dependent = models.User(
        nome_completo=nome_completo,
        email=email,
        celular=celular,
        tipo_usuario=UserRole.DEPENDENTE,
        plano_id=requester.plano_id,
    )
    db.add(dependent)
    db.flush()
    db.add(
        models.UserLink(
            usuario_id=dependent.id,
            usuario_principal_id=requester.id,
            tipo_vinculo=UserRole.DEPENDENTE.value,
            ativo=True,
        )
    )
    db.commit()
    db.refresh(dependent)
    logger.info("Dependent %s created by user=%s", dependent.id, requester.id)
    return dependent


def create_managed_user(
    db: Session,
    requester,
    nome_completo: str,
    email: str,
    tipo_usuario,
    celular: Optional[str] = None,
    plano_id: Optional[int] = None,
) -> models.User:
    """Create a cliente or gestor account on behalf of a socio."""
    if parse_role(requester.tipo_usuario) != UserRole.SOCIO:
        raise PermissionDeniedError("Only socio accounts can create users", target_id=requester.id)
    role = parse_role(tipo_usuario)
    if role not in MANAGED_ROLES:
        raise ValidationError("tipo_usuario must be cliente or gestor", field="tipo_usuario")

    email = normalize_email(email)
    _ensure_email_free(db, email)

    user = models.User(
        nome_completo=nome_completo,
        email=email,
        celular=celular,
        tipo_usuario=role,
        plano_id=plano_id,
    )
    db.add(user)
    db.flush()
    db.add(
        models.UserLink(
            usuario_id=user.id,
            usuario_principal_id=requester.id,
            tipo_vinculo=role.value,
            ativo=True,
        )
    )
    db.commit()
    db.refresh(user)
    logger.info("User %s (%s) created by socio=%s", user.id, role.value, requester.id)
    return user


def can_change_password(requester, target) -> bool:
    if requester.id == target.id:
        return True
    requester_role = parse_role(requester.tipo_usuario)
    if requester_role == UserRole.SOCIO:
        return True
    return requester_role == UserRole.GESTOR and parse_role(target.tipo_usuario) == UserRole.DEPENDENTE


def update_password(db: Session, requester, target_id: int, new_password: str) -> models.User:
    target = get_user(db, target_id)
    if not can_change_password(requester, target):
        raise PermissionDeniedError("Not allowed to change this password", target_id=target_id)
    if not new_password or len(new_password) < MIN_PASSWORD_LENGTH:
        raise ValidationError(
            f"Password must have at least {MIN_PASSWORD_LENGTH} characters", field="password"
        )
    target.password_hash = hash_password(new_password)
    target.atualizado_em = utcnow()
    db.commit()
    db.refresh(target)
    logger.info("Password updated for user=%s by user=%s", target_id, requester.id)
    return target


def _active_user_ids(db: Session, since) -> set:
    active = set()
    for model in (models.NutritionEntry, models.WeightEntry, models.HydrationEntry):
        column = getattr(model, model.timestamp_field)
        rows = (
            db.query(model.usuario_id)
            .filter(column >= since, model.deletado_em.is_(None))
            .distinct()
            .all()
        )
        active.update(row[0] for row in rows)
    return active


def user_stats(db: Session, requester) -> dict:
    """Account totals per role and recently active users."""
    if not can_manage_dependents(requester.tipo_usuario):
        raise PermissionDeniedError("Only gestor or socio accounts can view statistics", target_id=requester.id)

    users = db.query(models.User).all()
    por_tipo = {role.value: 0 for role in UserRole}
    for user in users:
        role = parse_role(user.tipo_usuario)
        if role is not None:
            por_tipo[role.value] += 1

    since = utcnow() - timedelta(days=ACTIVITY_WINDOW_DAYS)
    return {
        "total_usuarios": len(users),
        "por_tipo": por_tipo,
        "usuarios_ativos_30_dias": len(_active_user_ids(db, since)),
    }
