# dbkompare/api/v1/endpoints/leaderboard.py
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query

from dbkompare.core.deps import get_leaderboard_service, require_admin
from dbkompare.services.leaderboard_service import LeaderboardService
from dbkompare.utils.responses import send_response

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", summary="Ranking por XP, 10 usuarios por página")
def get_leaderboard(
    page: Optional[str] = Query("1", description="Página (desde 1)"),
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    logger.info(f"GET /leaderboard - page={page}")
    return send_response(200, "Leaderboard retrieved successfully", service.get_page(page))


@router.get("/top", summary="Top 10 por XP, completado con usuarios ficticios")
def get_top_rankers(
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    logger.info("GET /leaderboard/top")
    return send_response(200, "Leaderboard fetched successfully", service.get_top_rankers())


@router.post("/dummy/shuffle", summary="Crea o reordena los usuarios ficticios del ranking")
def shuffle_dummy_users(
    claims: dict = Depends(require_admin),
    service: LeaderboardService = Depends(get_leaderboard_service),
):
    logger.info(f"POST /leaderboard/dummy/shuffle - admin={claims.get('sub')}")
    return send_response(200, "Dummy users updated successfully", service.shuffle_dummy_users())
