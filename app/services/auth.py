from typing import Any, cast
from uuid import UUID

from jose import ExpiredSignatureError, JWTError, jwt
from jose.exceptions import JWTClaimsError

from app.config import Settings


class AuthError(Exception):
    """Base exception for auth-related errors."""

    pass


class InvalidTokenError(AuthError):
    """Exception raised when a token is invalid."""

    pass


class TokenExpiredError(AuthError):
    """Exception raised when a token has expired."""

    pass


class AuthService:
    """Service for verifying the bearer tokens issued by the account service.

    Tokens are signed with a shared secret and carry the user's ID in the
    ``sub`` claim. Issuing tokens is not handled here.

    Attributes:
        secret: Shared signing secret
        algorithms: List of accepted JWT algorithms
    """

    def __init__(self, settings: Settings) -> None:
        self.secret: str = settings.jwt_secret
        self.algorithms: list[str] = [settings.jwt_algorithm]

    def validate_token(self, token: str) -> dict[str, Any]:
        """Validate a JWT token.

        Args:
            token: The JWT token to validate

        Returns:
            The decoded token payload

        Raises:
            InvalidTokenError: If token is invalid
            TokenExpiredError: If token has expired
        """
        if not self.secret:
            raise InvalidTokenError("Token verification is not configured")
        try:
            payload = jwt.decode(token, self.secret, algorithms=self.algorithms)
            return cast(dict[str, Any], payload)
        except ExpiredSignatureError:
            raise TokenExpiredError("Token has expired")
        except JWTClaimsError as e:
            raise InvalidTokenError(f"Invalid claims: {str(e)}")
        except JWTError as e:
            raise InvalidTokenError(f"Invalid token: {str(e)}")

    def get_current_user_id(self, token: str) -> UUID:
        """Get the ID of the user a token was issued to.

        Args:
            token: The JWT token string

        Returns:
            The user ID from the ``sub`` claim

        Raises:
            InvalidTokenError: If token is invalid or has no usable subject
            TokenExpiredError: If token has expired
        """
        payload = self.validate_token(token)
        try:
            return UUID(str(payload["sub"]))
        except (KeyError, ValueError):
            raise InvalidTokenError("Token subject is not a user ID")
