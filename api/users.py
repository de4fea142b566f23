"""User API router.

Endpoints for the requester's own account, the users it may view, account
statistics, dependent and managed-account creation and password changes.
Every endpoint resolves the requester from the session context first.
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import SessionContext, get_session_context
from core.logger import get_logger
from database.deps import get_db_read, get_db_write
from schemas import (
    DependentCreateRequest,
    ManagedUserCreateRequest,
    PasswordUpdateRequest,
    PasswordUpdateResponse,
    UserResponse,
    UserStatsResponse,
    VisibleUsersResponse,
)
from services import user_management

logger = get_logger("api.users")
router = APIRouter(prefix="/api/users", tags=["users"])


@router.get("/me", response_model=UserResponse)
def read_me(session: SessionContext = Depends(get_session_context)):
    """Return the authenticated user."""
    return user_management.user_to_dict(session.user)


@router.get("/visible", response_model=VisibleUsersResponse)
def list_visible(
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
):
    """List the users the requester may select as the viewed user.

    The requester always comes first; each user carries the name and role
    of the principal it is linked to, if any.
    """
    users = user_management.list_visible_users(db, session.user)
    logger.info("User %s can view %s users", session.user_id, len(users))
    return {"total": len(users), "usuarios": users}


@router.get("/stats", response_model=UserStatsResponse)
def stats(
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
):
    """Account totals per role and users active in the last 30 days.

    Raises:
        PermissionDeniedError: If the requester is neither gestor nor socio.
    """
    return user_management.user_stats(db, session.user)


@router.post("/dependents", response_model=UserResponse, status_code=201)
def create_dependent(
    payload: DependentCreateRequest,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Add a dependent linked to the requester.

    Raises:
        PermissionDeniedError: If the requester cannot manage dependents.
        DependentLimitError: If the requester's plan is full.
        ValidationError: If the email is invalid or already registered.
    """
    requester = user_management.get_user(db, session.user_id)
    dependent = user_management.create_dependent(
        db, requester, payload.nome_completo, payload.email, payload.celular
    )
    return user_management.user_to_dict(dependent, requester)


@router.post("/managed", response_model=UserResponse, status_code=201)
def create_managed(
    payload: ManagedUserCreateRequest,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Create a cliente or gestor account (socio only)."""
    requester = user_management.get_user(db, session.user_id)
    user = user_management.create_managed_user(
        db,
        requester,
        payload.nome_completo,
        payload.email,
        payload.tipo_usuario,
        celular=payload.celular,
        plano_id=payload.plano_id,
    )
    return user_management.user_to_dict(user, requester)


@router.put("/{user_id}/password", response_model=PasswordUpdateResponse)
def change_password(
    user_id: int,
    payload: PasswordUpdateRequest,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Set a new password for the requester or a user it manages."""
    user_management.update_password(db, session.user, user_id, payload.password)
    return {"usuario_id": user_id, "atualizado": True}
