from typing import Literal

from pydantic import BaseModel, Field

WeightUnit = Literal["kg", "lbs"]


class UserProfile(BaseModel):
    """Single local user profile. target_weight is stored in kg."""

    first_name: str
    last_name: str = ""
    age: int | None = Field(default=None, ge=0, le=150)
    target_weight: float | None = Field(default=None, gt=0)
