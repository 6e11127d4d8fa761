"""
Medication Schemas
Pydantic models for medication-related API requests and responses
"""

from typing import Annotated, List, Literal, Optional, Union
from datetime import date
from pydantic import BaseModel, Field, model_validator

from tools.regimen import (
    AsNeeded,
    FixedTimes,
    Frequency,
    IntervalHours,
    Medication,
)


HHMM_PATTERN = r"^([01]\d|2[0-3]):([0-5]\d)$"

HHMMTime = Annotated[str, Field(pattern=HHMM_PATTERN, examples=["08:00"])]


# ==================== FREQUENCY SCHEMAS ====================

class FixedTimesSchema(BaseModel):
    """Explicit daily clock times"""
    kind: Literal["fixed_times"] = "fixed_times"
    times: List[HHMMTime] = Field(..., min_length=1)

    def to_domain(self) -> FixedTimes:
        return FixedTimes(times=tuple(self.times))


class IntervalHoursSchema(BaseModel):
    """First daily dose plus fixed spacing"""
    kind: Literal["interval_hours"] = "interval_hours"
    interval_hours: int = Field(..., ge=1)
    first_dose_time: HHMMTime

    def to_domain(self) -> IntervalHours:
        return IntervalHours(
            interval_hours=self.interval_hours,
            first_dose_time=self.first_dose_time
        )


class AsNeededSchema(BaseModel):
    """No schedule"""
    kind: Literal["as_needed"] = "as_needed"

    def to_domain(self) -> AsNeeded:
        return AsNeeded()


FrequencySchema = Annotated[
    Union[FixedTimesSchema, IntervalHoursSchema, AsNeededSchema],
    Field(discriminator="kind")
]


def frequency_to_schema(frequency: Frequency):
    if isinstance(frequency, FixedTimes):
        return FixedTimesSchema(times=list(frequency.times))
    if isinstance(frequency, IntervalHours):
        return IntervalHoursSchema(
            interval_hours=frequency.interval_hours,
            first_dose_time=frequency.first_dose_time
        )
    return AsNeededSchema()


# ==================== REQUEST SCHEMAS ====================

class MedicationBase(BaseModel):
    """Base medication schema"""
    name: str = Field(..., min_length=1, max_length=255)
    frequency: FrequencySchema
    end_date: Optional[date] = None


class MedicationCreate(MedicationBase):
    """Schema for creating a new medication"""
    start_date: Optional[date] = None

    @model_validator(mode="after")
    def check_date_range(self):
        if self.start_date and self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self


class MedicationUpdate(MedicationBase):
    """Schema for replacing a medication's rules"""
    start_date: date

    @model_validator(mode="after")
    def check_date_range(self):
        if self.end_date and self.end_date < self.start_date:
            raise ValueError("end_date must not be before start_date")
        return self

    def to_domain(self, medication_id: str) -> Medication:
        return Medication(
            id=medication_id,
            name=self.name,
            frequency=self.frequency.to_domain(),
            start_date=self.start_date,
            end_date=self.end_date
        )


# ==================== RESPONSE SCHEMAS ====================

class MedicationResponse(MedicationBase):
    """Schema for medication response"""
    id: str
    start_date: date

    @classmethod
    def from_domain(cls, medication: Medication) -> "MedicationResponse":
        return cls(
            id=medication.id,
            name=medication.name,
            frequency=frequency_to_schema(medication.frequency),
            start_date=medication.start_date,
            end_date=medication.end_date
        )


class MedicationList(BaseModel):
    """Schema for list of medications"""
    medications: List[MedicationResponse]
    total: int
