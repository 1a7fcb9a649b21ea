"""Trade data API: blended equity curve, statistics and cohorts."""

import logging

from fastapi import APIRouter, HTTPException, Query

from blendcurve.engine.trade_pipeline import (
    parse_selections,
    parse_start_date,
    process_cohorts,
    process_trade_data,
)
from blendcurve.schemas.trade_data import CohortDataRead, ProcessedTradeDataRead
from blendcurve.services.errors import DatasetNotFoundError, TradeDataError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/trades", tags=["trades"])


def _bad_request(e: TradeDataError) -> HTTPException:
    if isinstance(e, DatasetNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    return HTTPException(status_code=400, detail=str(e))


@router.get("", response_model=ProcessedTradeDataRead, response_model_by_alias=True)
async def get_trade_data(
    algorithms: str | None = Query(default=None, description='JSON list of {"dataset", "units"}'),
    start_date: str | None = Query(default=None, alias="startDate"),
):
    """Blend the selected datasets into one account and compute its statistics."""
    try:
        selections = parse_selections(algorithms)
        start = parse_start_date(start_date)
        result = await process_trade_data(selections, start)
    except TradeDataError as e:
        raise _bad_request(e)
    return ProcessedTradeDataRead.model_validate(result)


@router.get("/cohorts", response_model=list[CohortDataRead], response_model_by_alias=True)
async def get_cohorts(
    algorithms: str | None = Query(default=None),
    start_date: str | None = Query(default=None, alias="startDate"),
):
    """Monthly cohort views of the blended equity curve."""
    try:
        selections = parse_selections(algorithms)
        start = parse_start_date(start_date)
        cohorts = await process_cohorts(selections, start)
    except TradeDataError as e:
        raise _bad_request(e)
    return [CohortDataRead.model_validate(c) for c in cohorts]
