"""Configured datasets and their capital requirements."""

from fastapi import APIRouter

from blendcurve.config import settings
from blendcurve.schemas.trade_data import DatasetRead

router = APIRouter(prefix="/api/datasets", tags=["datasets"])


@router.get("", response_model=list[DatasetRead], response_model_by_alias=True)
def list_datasets():
    return settings.capital_table().datasets()
