"""
Statistics router for the caller's restaurant.

Daily rows are written through a single upsert per (restaurant, date);
every read endpoint aggregates those rows.
"""
from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from restohub.core.deps import get_current_user_id
from restohub.db.session import get_db
from restohub.schemas.statistics import (
    BenchmarksResponse,
    DailyStatisticResponse,
    DailyStatisticUpdate,
    DailyStatisticUpsertResponse,
    GroupBy,
    RangeStatisticsResponse,
    ReportResponse,
    SummaryResponse,
)
from restohub.services.statistics_service import StatisticsService

router = APIRouter(prefix="/stats", tags=["statistics"])


@router.get("", response_model=RangeStatisticsResponse)
def get_statistics(
    start_date: Optional[date] = Query(None, description="Defaults to 30 days before end_date"),
    end_date: Optional[date] = Query(None, description="Defaults to today"),
    group_by: GroupBy = Query("day"),
    compare: bool = Query(False, description="Include the preceding period of equal length"),
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return StatisticsService(db).range_statistics(
        user_id, start=start_date, end=end_date, group_by=group_by, compare=compare
    )


@router.put("/daily/{stat_date}", response_model=DailyStatisticUpsertResponse)
def upsert_daily_statistic(
    stat_date: date,
    payload: DailyStatisticUpdate,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """
    Create or replace the caller's statistics for ``stat_date``.

    Responds 201 when the row is new and 200 when it replaced an existing one.
    Rates and averages are recomputed from the counters.
    """
    row, created = StatisticsService(db).upsert_daily(user_id, stat_date, payload)
    body = DailyStatisticUpsertResponse(
        message="Daily statistics created" if created else "Daily statistics updated",
        created=created,
        statistic=DailyStatisticResponse.model_validate(row),
    )
    return JSONResponse(
        status_code=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        content=body.model_dump(mode="json"),
    )


@router.get("/summary", response_model=SummaryResponse)
def get_summary(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Today's row, short-term trends, best day and the weekly aggregate."""
    return StatisticsService(db).summary(user_id)


@router.get("/report", response_model=ReportResponse)
def get_report(
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    include_charts: bool = False,
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    return StatisticsService(db).report(
        user_id, start=start_date, end=end_date, include_charts=include_charts
    )


@router.get("/benchmarks", response_model=BenchmarksResponse)
def get_benchmarks(
    db: Session = Depends(get_db),
    user_id: str = Depends(get_current_user_id),
):
    """Last 30 days against other restaurants of the same cuisine and city."""
    return StatisticsService(db).benchmarks(user_id)
