# app/api/cron.py

import hmac

from fastapi import APIRouter, HTTPException, Request

from app.config import settings
from app.services.scheduler_service import scheduler_service
from app.utils.logger import logger
from app.utils.time_utils import to_iso, utcnow

router = APIRouter(prefix="/cron", tags=["cron"])


def _check_cron_request(request: Request):
    if settings.cron_secret:
        expected = f"Bearer {settings.cron_secret}"
        provided = request.headers.get("authorization") or ""
        if not hmac.compare_digest(provided, expected):
            raise HTTPException(status_code=401, detail="Unauthorized")
    if settings.is_production and not request.headers.get("x-vercel-cron"):
        raise HTTPException(status_code=403, detail="Forbidden: Not a cron request")


@router.get("/email-scheduler")
async def run_email_scheduler(request: Request):
    """HTTP trigger for the scheduled email sweep (external cron)."""
    _check_cron_request(request)
    checked = to_iso(utcnow())
    try:
        summary = await scheduler_service.check_and_send()
    except Exception as e:
        logger.error(f"❌ Cron email scheduler failed: {e}")
        raise HTTPException(status_code=500, detail="Error processing scheduled emails")

    if not summary["found"]:
        return {
            "success": True,
            "message": "No emails ready to send",
            "successful": 0,
            "failed": 0,
            "checked": checked,
        }
    return {
        "success": True,
        "message": f"Processed {summary['found']} scheduled email(s)",
        "successful": summary["successful"],
        "failed": summary["failed"],
        "checked": checked,
    }
