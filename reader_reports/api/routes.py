"""Week lookup and manual report-generation routes."""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException, status

from reader_reports.api.schemas import GenerateReportRequest, WeeklyReportResponse, WeekResponse
from reader_reports.core.calendar import BusinessCalendar
from reader_reports.core.dependencies import get_calendar, get_report_service
from reader_reports.domain.entities import WeekRange
from reader_reports.domain.errors import MissingWeekMetadataError
from reader_reports.domain.services import IWeeklyReportService

logger = logging.getLogger(__name__)
router = APIRouter(tags=["weekly-reports"])


def _week_response(calendar: BusinessCalendar, week: WeekRange) -> WeekResponse:
    return WeekResponse(
        iso_week=week.iso_week,
        iso_year=week.iso_year,
        start=week.start,
        end=week.end,
        key=f"{week.iso_year}-W{week.iso_week:02d}",
        label=calendar.format_week_label(week.iso_week, week.iso_year),
    )


@router.get("/weeks/previous", response_model=WeekResponse)
async def get_previous_week(
    calendar: Annotated[BusinessCalendar, Depends(get_calendar)],
) -> WeekResponse:
    """Previous complete ISO week in business time (the default report week)."""
    return _week_response(calendar, calendar.previous_complete_week())


@router.get("/weeks/{iso_year}/{iso_week}", response_model=WeekResponse)
async def get_week(
    iso_year: int,
    iso_week: int,
    calendar: Annotated[BusinessCalendar, Depends(get_calendar)],
) -> WeekResponse:
    try:
        week = calendar.iso_week_range(iso_week, iso_year)
    except ValueError as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return _week_response(calendar, week)


@router.post("/reports/weekly", response_model=WeeklyReportResponse)
async def generate_weekly_report(
    payload: GenerateReportRequest,
    report_service: Annotated[IWeeklyReportService, Depends(get_report_service)],
) -> WeeklyReportResponse:
    """Generate a weekly report from the supplied quotes.

    Delivery and persistence stay with the caller; the assembled report is
    returned as-is.
    """
    quotes = [quote.to_entity(payload.user_id) for quote in payload.quotes]
    profile = payload.profile.to_entity(payload.user_id)
    week_meta = payload.week.model_dump() if payload.week else None
    try:
        report = await report_service.generate(payload.user_id, quotes, profile, week_meta)
    except MissingWeekMetadataError as exc:
        logger.warning("Rejected report request for user %s: %s", payload.user_id, exc)
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))
    return WeeklyReportResponse.model_validate(report)
