from pydantic import UUID4, BaseModel, ConfigDict, Field


class LikeRequestSchema(BaseModel):
    """Body of a like request.

    Attributes:
        is_super_like: Record a super like instead of a like
    """

    model_config = ConfigDict(frozen=True)

    is_super_like: bool = False


class CandidatesRequestSchema(BaseModel):
    """Body of a candidates request.

    Attributes:
        exclude_profiles: Profiles the client is already showing
    """

    model_config = ConfigDict(frozen=True)

    exclude_profiles: list[UUID4] = Field(default_factory=list, max_length=500)
