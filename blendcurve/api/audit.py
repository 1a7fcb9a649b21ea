"""Audited trade import API."""

import logging

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from sqlmodel import Session

from blendcurve.database import get_session
from blendcurve.schemas.audit import AuditedTradeRead, AuditImportResponse
from blendcurve.services.audit_parser import parse_audit_text
from blendcurve.services.audit_store import list_audited_trades, save_audited_trades

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/audit", tags=["audit"])


@router.post("", response_model=AuditImportResponse, response_model_by_alias=True)
async def import_audit(
    algorithm: str = Form(default=""),
    text: str | None = Form(default=None),
    file: UploadFile | None = File(default=None),
    session: Session = Depends(get_session),
):
    """Parse OCR text of an audited trade list and store the trades not seen before.

    The text is taken from the `text` field, or from an uploaded file holding
    the recognized text.
    """
    algorithm = algorithm.strip()
    if file is not None and not text:
        raw = await file.read()
        text = raw.decode("utf-8", errors="replace")
    if not algorithm or not text:
        raise HTTPException(status_code=400, detail="File and algorithm are required")

    parsed = parse_audit_text(text, algorithm)
    new_trades = save_audited_trades(session, parsed)
    return AuditImportResponse(
        message=f"Successfully processed {len(new_trades)} new trades",
        parsed=len(parsed),
        new_trades=[AuditedTradeRead.model_validate(t) for t in new_trades],
    )


@router.get("", response_model=list[AuditedTradeRead], response_model_by_alias=True)
def list_audit(
    algorithm: str | None = None,
    limit: int = 500,
    offset: int = 0,
    session: Session = Depends(get_session),
):
    return list_audited_trades(session, algorithm=algorithm, limit=limit, offset=offset)
