# dbkompare/api/v1/endpoints/achievements.py
import logging

from fastapi import APIRouter, Depends

from dbkompare.core.deps import get_achievement_tracker
from dbkompare.schemas.achievement import AchievementEventRequest, AwardXPRequest
from dbkompare.services.achievement_service import AchievementTracker
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/events", summary="Registra un evento LOGIN, XP o GEMS")
def process_achievement(
    request: AchievementEventRequest,
    tracker: AchievementTracker = Depends(get_achievement_tracker),
):
    logger.info(f"POST /achievements/events - user={request.userId}, type={request.eventType}")
    result = tracker.process_event(request.userId, request.eventType, request.delta, request.reason)
    return send_response(200, f"{request.eventType} event processed successfully", result)


@router.post("/xp", summary="Otorga XP a un usuario")
def award_xp(
    request: AwardXPRequest,
    tracker: AchievementTracker = Depends(get_achievement_tracker),
):
    logger.info(f"POST /achievements/xp - user={request.userId}, xp={request.xpAmount}")
    result = tracker.award_xp(request.userId, request.xpAmount, request.reason)
    return send_response(200, "XP awarded successfully", result)


@router.get("/{user_id}/metrics", summary="Contadores de logros del usuario")
def get_user_metrics(
    user_id: str,
    tracker: AchievementTracker = Depends(get_achievement_tracker),
):
    logger.info(f"GET /achievements/{user_id}/metrics")
    return send_response(200, "User metrics retrieved successfully", tracker.get_metrics(user_id))
