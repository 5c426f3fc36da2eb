"""Content ranking endpoints.

Rankings are computed by the worker; these endpoints only read the cache.
"""

from fastapi import APIRouter

from readpulse.api.v1.deps import Rankings
from readpulse.core.exceptions import NotFoundError
from readpulse.schemas.ranking import RankingListResponse, RankingResult, RankingType

router = APIRouter()


@router.get(
    "",
    response_model=RankingListResponse,
    summary="All rankings",
)
async def get_all_rankings(engine: Rankings) -> RankingListResponse:
    """Every computed ranking slot."""
    return RankingListResponse(rankings=await engine.get_all_rankings())


@router.get(
    "/{ranking_type}",
    response_model=RankingResult,
    summary="Get ranking",
)
async def get_ranking(ranking_type: RankingType, engine: Rankings) -> RankingResult:
    """One ranking slot; 404 until it has been computed."""
    result = await engine.get_ranking(ranking_type)
    if result is None:
        raise NotFoundError("Ranking", ranking_type.value)
    return result
