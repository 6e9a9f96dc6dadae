import logging
from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException, Query, status
from fastapi.concurrency import run_in_threadpool
from neo4j.exceptions import DriverError, Neo4jError
from pydantic import UUID4

from app.dependencies import (
    get_candidate_service,
    get_current_user_id,
    get_match_service,
)
from app.models.swipe import SwipeAction
from app.schemas.requests import CandidatesRequestSchema, LikeRequestSchema
from app.schemas.responses import CandidatesResponseSchema, SwipeResponseSchema
from app.services.candidate import CandidateService
from app.services.match import MatchService
from app.services.swipe_log import ActionRecordingError, DuplicateSwipeError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/dating", tags=["dating"])


async def _swipe(
    match_service: MatchService,
    user_id: UUID,
    target_id: UUID,
    action: SwipeAction,
) -> SwipeResponseSchema:
    try:
        outcome = await run_in_threadpool(
            match_service.record_swipe, user_id, target_id, action
        )
    except DuplicateSwipeError as e:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    except ActionRecordingError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))
    except (Neo4jError, DriverError):
        logger.exception(f"Recording {action} by {user_id} on {target_id} failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to swipe",
        )
    return SwipeResponseSchema.from_outcome(outcome)


@router.post("/profiles", response_model=CandidatesResponseSchema)
async def get_candidates(
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    candidate_service: Annotated[CandidateService, Depends(get_candidate_service)],
    body: CandidatesRequestSchema | None = None,
    limit: Annotated[int, Query(ge=1, le=50)] = 10,
) -> CandidatesResponseSchema:
    """Get the next profiles to show the current user.

    Args:
        user_id: The authenticated user
        candidate_service: Selects the candidates
        body: Profiles the client is already showing
        limit: Maximum number of profiles to return

    Returns:
        Randomly selected profiles the user has not liked or matched

    Raises:
        HTTPException: If fetching candidates fails
    """
    exclude = body.exclude_profiles if body else []
    try:
        profiles = await run_in_threadpool(
            candidate_service.get_candidates, user_id, exclude, limit
        )
    except (Neo4jError, DriverError):
        logger.exception(f"Fetching candidates for {user_id} failed")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to get profiles",
        )
    return CandidatesResponseSchema(profiles=profiles)


@router.post("/like/{target_id}", response_model=SwipeResponseSchema)
async def like_profile(
    target_id: UUID4,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    match_service: Annotated[MatchService, Depends(get_match_service)],
    body: LikeRequestSchema | None = None,
) -> SwipeResponseSchema:
    """Like or super like a profile.

    Args:
        target_id: ID of the profile being liked
        user_id: The authenticated user
        match_service: Records the swipe
        body: Whether this is a super like

    Returns:
        The outcome of the like

    Raises:
        HTTPException: If the like cannot be recorded
    """
    action = SwipeAction.LIKE
    if body and body.is_super_like:
        action = SwipeAction.SUPER_LIKE
    return await _swipe(match_service, user_id, target_id, action)


@router.post("/pass/{target_id}", response_model=SwipeResponseSchema)
async def pass_profile(
    target_id: UUID4,
    user_id: Annotated[UUID, Depends(get_current_user_id)],
    match_service: Annotated[MatchService, Depends(get_match_service)],
) -> SwipeResponseSchema:
    """Pass on a profile.

    Args:
        target_id: ID of the profile being passed
        user_id: The authenticated user
        match_service: Records the swipe

    Returns:
        The outcome of the pass

    Raises:
        HTTPException: If the pass cannot be recorded
    """
    return await _swipe(match_service, user_id, target_id, SwipeAction.PASS)
