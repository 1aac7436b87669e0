# plate_inventory/email_service.py

import base64
import logging
from datetime import datetime
from typing import Optional

import requests

from .config import NOTIFY_EMAIL_TIMEOUT, NOTIFY_EMAIL_URL
from .report import ReportSummary, report_filename

logger = logging.getLogger(__name__)


def build_email_payload(pdf_bytes: bytes, recipient: str, summary: ReportSummary, now: Optional[datetime] = None) -> dict:
    now = now or datetime.now()
    html = f"""
      <h2>License Plate Inventory Report</h2>
      <p>Your inventory scan has been completed. Please find the detailed report attached.</p>

      <h3>Summary:</h3>
      <ul>
        <li><strong>Total Scanned:</strong> {summary.total} vehicles</li>
        <li><strong>Found in Warehouse:</strong> {summary.matched} vehicles</li>
        <li><strong>Not in Warehouse:</strong> {summary.unmatched} vehicles</li>
      </ul>

      <p>The attached PDF contains all captured images and detailed information.</p>

      <p><em>Generated on {now.strftime('%Y-%m-%d %H:%M:%S')}</em></p>
    """
    return {
        "to": recipient,
        "subject": f"License Plate Inventory Report - {now.strftime('%Y-%m-%d')}",
        "html": html,
        "attachments": [
            {
                "filename": report_filename(now),
                "content": base64.b64encode(pdf_bytes).decode("ascii"),
                "encoding": "base64",
                "contentType": "application/pdf",
            }
        ],
    }


def send_report_email(
    pdf_bytes: bytes,
    recipient: str,
    summary: ReportSummary,
    endpoint: Optional[str] = NOTIFY_EMAIL_URL,
    session: Optional[requests.Session] = None,
) -> bool:
    """
    Posts the report to the notification endpoint as a base64 attachment.
    Returns True when the endpoint answered with a 2xx status.
    """
    if not endpoint:
        logger.error("Email endpoint not configured, report not sent")
        return False

    payload = build_email_payload(pdf_bytes, recipient, summary)
    try:
        response = (session or requests).post(endpoint, json=payload, timeout=NOTIFY_EMAIL_TIMEOUT)
    except requests.exceptions.RequestException as e:
        logger.error(f"Error sending email: {e}")
        return False

    if not response.ok:
        logger.error(f"Email endpoint returned HTTP {response.status_code}")
        return False
    logger.info(f"Report emailed to {recipient}")
    return True
