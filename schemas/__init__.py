"""Pydantic schema package for request and response models."""

from .user_schema import (
    UserResponse,
    VisibleUsersResponse,
    DependentCreateRequest,
    ManagedUserCreateRequest,
    PasswordUpdateRequest,
    PasswordUpdateResponse,
    UserStatsResponse,
)
from .goal_schema import GoalUpdateRequest, GoalResponse
from .entry_schema import (
    NutritionEntryCreate,
    WeightEntryCreate,
    HydrationEntryCreate,
    NutritionEntryResponse,
    WeightEntryResponse,
    HydrationEntryResponse,
    EntryDeletedResponse,
)
from .dashboard_schema import DashboardSummary, DashboardResponse
from .report_schema import ReportCreateRequest, ReportStatusUpdate, ReportResponse, ReportListResponse

__all__ = [
    "UserResponse",
    "VisibleUsersResponse",
    "DependentCreateRequest",
    "ManagedUserCreateRequest",
    "PasswordUpdateRequest",
    "PasswordUpdateResponse",
    "UserStatsResponse",
    "GoalUpdateRequest",
    "GoalResponse",
    "NutritionEntryCreate",
    "WeightEntryCreate",
    "HydrationEntryCreate",
    "NutritionEntryResponse",
    "WeightEntryResponse",
    "HydrationEntryResponse",
    "EntryDeletedResponse",
    "DashboardSummary",
    "DashboardResponse",
    "ReportCreateRequest",
    "ReportStatusUpdate",
    "ReportResponse",
    "ReportListResponse",
]
