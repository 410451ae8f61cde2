# backend/scheduler/schemas/schedule.py
"""
Weekly blocks shared by therapist working hours and client availability.

day_of_week on the wire is Monday-first: 0 = Monday ... 6 = Sunday.
"""

from pydantic import BaseModel, Field, field_validator, model_validator

from ..services.scheduling.time_utils import normalize_time, time_str_to_minutes


class WeeklyBlockIn(BaseModel):
    day_of_week: int = Field(ge=0, le=6)
    start_time: str
    end_time: str

    @field_validator("start_time", "end_time")
    @classmethod
    def _normalize(cls, value: str) -> str:
        return normalize_time(value)

    @model_validator(mode="after")
    def _ordered(self):
        if time_str_to_minutes(self.start_time) >= time_str_to_minutes(self.end_time):
            raise ValueError("start_time must be before end_time")
        return self

    model_config = {"from_attributes": True}


class WeeklyBlockRead(BaseModel):
    day_of_week: int
    start_time: str
    end_time: str

    model_config = {"from_attributes": True}
