from pydantic import BaseModel, ConfigDict, Field

from app.models.swipe import Outcome
from app.models.user import Profile


class HealthCheckResponseSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    success: bool


class SwipeResponseSchema(BaseModel):
    """Result of a like or pass.

    Attributes:
        outcome: Human readable outcome, e.g. "Limit Reached"
        outcome_code: Machine readable outcome
    """

    model_config = ConfigDict(frozen=True)

    outcome: str = Field(description="Human readable outcome")
    outcome_code: Outcome = Field(description="Machine readable outcome")

    @classmethod
    def from_outcome(cls, outcome: Outcome) -> "SwipeResponseSchema":
        return cls(outcome=outcome.label, outcome_code=outcome)


class CandidatesResponseSchema(BaseModel):
    model_config = ConfigDict(frozen=True)

    profiles: list[Profile]
