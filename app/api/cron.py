"""Scheduler trigger endpoints for the batch coaching drivers."""
import logging

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from sqlalchemy.orm import Session

from app.config import settings
from app.database import get_db
from app.api.coaching import get_coaching_service
from app.services.coaching_service import CoachingService, DriverSummary
from app.services.driver_service import DriverService
from app.services.notification_types import MEAL_COACHING_TYPES, NotificationType

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/cron", tags=["cron"])


def verify_cron_secret(authorization: str | None = Header(default=None)):
    """Require the shared scheduler secret when one is configured."""
    if not settings.cron_secret:
        return
    if authorization != f"Bearer {settings.cron_secret}":
        raise HTTPException(status_code=401, detail="Unauthorized")


def get_driver_service(
    db: Session = Depends(get_db),
    coaching_service: CoachingService = Depends(get_coaching_service),
) -> DriverService:
    return DriverService(db, coaching_service)


def _response(job: str, summary: DriverSummary) -> dict:
    return {"success": True, "type": job, "stats": summary.to_dict()}


async def _run_driver(job: str, run) -> dict:
    try:
        summary = await run()
    except Exception:
        logger.exception("[%s] Driver run failed", job)
        raise HTTPException(status_code=500, detail=f"Failed to process {job} cron")
    return _response(job, summary)


@router.get("/coaching", dependencies=[Depends(verify_cron_secret)])
async def run_coaching(
    type: str | None = Query(default=None),
    drivers: DriverService = Depends(get_driver_service),
):
    """
    Time-of-day coaching run.

    Query params:
        type: morning, lunch, dinner or evening
    """
    allowed = [t.value for t in MEAL_COACHING_TYPES]
    if type not in allowed:
        raise HTTPException(
            status_code=400,
            detail=f"Invalid type. Use: {', '.join(allowed)}",
        )
    notification_type = NotificationType(type)
    return await _run_driver(type, lambda: drivers.run_coaching(notification_type))


@router.get("/water", dependencies=[Depends(verify_cron_secret)])
async def run_water(drivers: DriverService = Depends(get_driver_service)):
    return await _run_driver("water", drivers.run_water)


@router.get("/weekly", dependencies=[Depends(verify_cron_secret)])
async def run_weekly(drivers: DriverService = Depends(get_driver_service)):
    return await _run_driver("weekly", drivers.run_weekly)


@router.get("/check-inactive", dependencies=[Depends(verify_cron_secret)])
async def run_inactive_check(drivers: DriverService = Depends(get_driver_service)):
    return await _run_driver("inactive", drivers.run_inactive_check)


@router.get("/check-milestones", dependencies=[Depends(verify_cron_secret)])
async def run_milestones(drivers: DriverService = Depends(get_driver_service)):
    return await _run_driver("milestone", drivers.run_milestones)


@router.get("/post-exercise", dependencies=[Depends(verify_cron_secret)])
async def run_post_exercise(drivers: DriverService = Depends(get_driver_service)):
    return await _run_driver("exercise", drivers.run_post_exercise)
