from pydantic import UUID4, BaseModel, ConfigDict


class Profile(BaseModel):
    """Read-only projection of a user shown as a dating candidate.

    Attributes:
        user_id: Unique identifier for the user
        username: Unique username for the user
        display_name: User's display name
        bio: User's biography if set
        profile_picture_s3_key: S3 key for profile picture if exists
        is_premium: Whether the user bypasses the daily like quota
    """

    model_config = ConfigDict(frozen=True)

    user_id: UUID4
    username: str
    display_name: str
    bio: str | None = None
    profile_picture_s3_key: str | None = None
    is_premium: bool = False
