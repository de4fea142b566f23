"""Reports API router.

Report generation is role-gated on the viewed user. Reading, updating the
delivery status and deleting a report require access to its owner.
"""

from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from api.deps import SessionContext, get_report_service, get_session_context, require_view_access
from core.dates import DateRange
from core.logger import get_logger
from database.deps import get_db_read, get_db_write
from database.models import ReportStatus
from schemas import ReportCreateRequest, ReportListResponse, ReportResponse, ReportStatusUpdate
from services import reports
from services.reports import ReportService

logger = get_logger("api.reports")
router = APIRouter(prefix="/api/reports", tags=["reports"])


@router.post("", response_model=ReportResponse, status_code=201)
async def generate_report(
    payload: ReportCreateRequest,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
    service: ReportService = Depends(get_report_service),
):
    """Generate and persist a report for the viewed user.

    Args:
        payload: Report type and inclusive local-date range.

    Returns:
        The stored report with status `pendente`.
    """
    target = require_view_access(db, session, payload.usuario_id)
    date_range = DateRange(payload.data_inicio, payload.data_fim)
    return await service.generate(db, target.id, payload.tipo, date_range)


@router.get("", response_model=ReportListResponse)
def list_reports(
    user_id: Optional[int] = Query(None, description="Viewed user; defaults to the requester"),
    status: Optional[ReportStatus] = Query(None),
    data_inicio: Optional[date] = Query(None),
    data_fim: Optional[date] = Query(None),
    limit: int = Query(50, ge=1, le=200),
    skip: int = Query(0, ge=0),
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
):
    """Reports of the viewed user, newest first."""
    target = require_view_access(db, session, user_id)
    items = reports.list_reports(db, target.id, status=status, start=data_inicio, end=data_fim, limit=limit, skip=skip)
    return {"total": len(items), "relatorios": items}


@router.get("/{report_id}", response_model=ReportResponse)
def read_report(
    report_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_read),
):
    report = reports.get_report(db, report_id)
    require_view_access(db, session, report.usuario_id)
    return report


@router.patch("/{report_id}/status", response_model=ReportResponse)
def update_report_status(
    report_id: int,
    payload: ReportStatusUpdate,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Change the delivery status; `enviado` stamps `enviado_em`."""
    report = reports.get_report(db, report_id)
    require_view_access(db, session, report.usuario_id)
    return reports.update_status(db, report, payload.status_envio)


@router.delete("/{report_id}", status_code=204)
def delete_report(
    report_id: int,
    session: SessionContext = Depends(get_session_context),
    db: Session = Depends(get_db_write),
):
    """Delete a report owned by the requester or a user it manages."""
    report = reports.get_report(db, report_id)
    require_view_access(db, session, report.usuario_id)
    reports.delete_report(db, report)
