"""On-this-day endpoint."""

import re

from fastapi import APIRouter

from finhistory.core.errors import RequestValidationFailed
from finhistory.schemas import DataResponse, MonthDayResult
from finhistory.services import events as event_service

router = APIRouter()

MONTH_DAY = re.compile(r"^(0[1-9]|1[0-2])-(0[1-9]|[12][0-9]|3[01])$")


@router.get(
    "/{month_day}",
    response_model=DataResponse[MonthDayResult],
    summary="Events on a month-day",
    description="Published events that happened on MM-DD in any year, newest first.",
)
async def events_on_month_day(month_day: str) -> DataResponse[MonthDayResult]:
    if not MONTH_DAY.match(month_day):
        raise RequestValidationFailed("month_day must be MM-DD format", details={"month_day": month_day})
    return DataResponse(data=await event_service.list_events_by_month_day(month_day))
