from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends

from ..auth import UserIdentity, get_current_user
from ..repositories import Repository, get_repository
from ..schemas import DashboardStats
from ..stats import compute_dashboard_stats

router = APIRouter(
    prefix="/api/dashboard",
    tags=["dashboard"],
    responses={
        401: {"description": "Not authenticated"},
        500: {"description": "Internal server error"},
    },
)


# PUBLIC_INTERFACE
@router.get(
    "/stats",
    response_model=DashboardStats,
    summary="Dashboard Statistics",
    description=(
        "Counters for the current user: totals, completion rate, tasks created today versus "
        "yesterday and completions over the last 7 days versus the 7 days before."
    ),
)
def get_dashboard_stats(
    user: UserIdentity = Depends(get_current_user),
    repo: Repository = Depends(get_repository),
) -> DashboardStats:
    return compute_dashboard_stats(repo, user.id, datetime.now())
