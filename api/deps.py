"""Request-scoped dependencies shared by the routers.

The upstream auth service forwards the authenticated user id in the
`X-User-Id` header; `get_session_context` turns it into an explicit
`SessionContext` that the routers hand to the role gate and services.
"""

from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, Header
from sqlalchemy.orm import Session

from core.exceptions import AuthenticationError, NotFoundError, PermissionDeniedError
from database import models
from database.deps import get_db_read, get_read_session_factory
from database.models import UserRole
from services.collectors import QueryCollector
from services.dashboard import DashboardService
from services.insight_client import default_insight_client
from services.reports import ReportService
from services.role_gate import can_view, parse_role


@dataclass
class SessionContext:
    """The authenticated user and its parsed role."""

    user: models.User
    role: Optional[UserRole]

    @property
    def user_id(self) -> int:
        return self.user.id


def get_session_context(
    x_user_id: Optional[str] = Header(default=None),
    db: Session = Depends(get_db_read),
) -> SessionContext:
    if not x_user_id:
        raise AuthenticationError()
    try:
        user_id = int(x_user_id)
    except ValueError:
        raise AuthenticationError("Invalid X-User-Id header")
    user = db.get(models.User, user_id)
    if user is None:
        raise AuthenticationError("Unknown user")
    return SessionContext(user=user, role=parse_role(user.tipo_usuario))


def require_view_access(db: Session, session: SessionContext, target_id: Optional[int]) -> models.User:
    """Resolve the viewed user, defaulting to the session user.

    Raises:
        NotFoundError: If the target does not exist.
        PermissionDeniedError: If the role gate excludes the target.
    """
    if target_id is None or target_id == session.user.id:
        return session.user
    target = db.get(models.User, target_id)
    if target is None:
        raise NotFoundError("User", target_id)
    if not can_view(session.user, target):
        raise PermissionDeniedError(target_id=target_id)
    return target


def get_collector() -> QueryCollector:
    return QueryCollector(get_read_session_factory())


def get_dashboard_service(collector: QueryCollector = Depends(get_collector)) -> DashboardService:
    return DashboardService(collector)


def get_report_service(collector: QueryCollector = Depends(get_collector)) -> ReportService:
    return ReportService(collector, default_insight_client())
