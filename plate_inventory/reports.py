# plate_inventory/reports.py

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from .dependencies import get_report_builder, get_store
from .email_service import send_report_email
from .report import ReportBuilder, ReportDocument, estimate_pdf_size, report_filename
from .schemas import EmailRequest, EmailResponse
from .store import MANIFEST_TABLE, PLATES_TABLE, RecordStore

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/report", tags=["report"])


def _build(store: RecordStore, builder: ReportBuilder) -> ReportDocument:
    records = store.fetch_all(PLATES_TABLE)
    warehouse_count = len(store.fetch_all(MANIFEST_TABLE))
    return builder.build(records, warehouse_count)


@router.get("", summary="Download the inventory report as PDF")
def download_report(store: RecordStore = Depends(get_store), builder: ReportBuilder = Depends(get_report_builder)):
    document = _build(store, builder)
    return Response(
        content=document.content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="{report_filename()}"'},
    )


@router.get("/estimate", summary="Estimated report size")
def report_estimate(store: RecordStore = Depends(get_store)):
    count = len(store.fetch_all(PLATES_TABLE))
    return {"plates": count, "estimated_size": estimate_pdf_size(count)}


@router.post("/email", response_model=EmailResponse, summary="Build the report and email it")
def email_report(
    request: EmailRequest,
    store: RecordStore = Depends(get_store),
    builder: ReportBuilder = Depends(get_report_builder),
):
    document = _build(store, builder)
    sent = send_report_email(document.content, request.to, document.summary)
    return EmailResponse(
        sent=sent,
        total=document.summary.total,
        matched=document.summary.matched,
        unmatched=document.summary.unmatched,
    )
