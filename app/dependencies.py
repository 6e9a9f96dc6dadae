from typing import Annotated
from uuid import UUID

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.services.auth import AuthService, InvalidTokenError, TokenExpiredError
from app.services.candidate import CandidateService
from app.services.match import MatchService

security = HTTPBearer()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


def get_match_service(request: Request) -> MatchService:
    return request.app.state.match_service


def get_candidate_service(request: Request) -> CandidateService:
    return request.app.state.candidate_service


async def get_current_user_id(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(security)],
    auth_service: Annotated[AuthService, Depends(get_auth_service)],
) -> UUID:
    """Dependency for getting the ID of the authenticated user.

    Args:
        credentials: The HTTP Authorization header credentials
        auth_service: Verifies the bearer token

    Returns:
        ID of the user the token was issued to

    Raises:
        HTTPException: If authentication fails
    """
    try:
        return auth_service.get_current_user_id(credentials.credentials)
    except (InvalidTokenError, TokenExpiredError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(e),
            headers={"WWW-Authenticate": "Bearer"},
        )
