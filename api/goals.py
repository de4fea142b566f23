"""Goals API router."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from api.deps import SessionContext, get_session_context, require_view_access
from database.deps import get_db_read, get_db_write
from schemas import GoalResponse, GoalUpdateRequest
from services.goals import get_goals, goal_resolver, upsert_goals

router = APIRouter(prefix="/api/goals", tags=["goals"])


def _goal_response(user_id: int, goals) -> dict:
    return {
        "usuario_id": user_id,
        **goals.as_dict(),
        "macros_alvo": goal_resolver.macro_targets(goals.calorias_diarias),
    }


@router.get("/{user_id}", response_model=GoalResponse)
def read_goals(
    user_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
):
    """Effective goals of a viewable user, defaults applied."""
    target = require_view_access(db, session, user_id)
    return _goal_response(target.id, get_goals(db, target.id))


@router.put("/{user_id}", response_model=GoalResponse)
def replace_goals(
    user_id: int,
    payload: GoalUpdateRequest,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Replace the goals of a viewable user."""
    target = require_view_access(db, session, user_id)
    upsert_goals(
        db,
        target.id,
        calorias_diarias=payload.calorias_diarias,
        agua_diaria_ml=payload.agua_diaria_ml,
        peso_objetivo=payload.peso_objetivo,
    )
    return _goal_response(target.id, get_goals(db, target.id))
