# data entry models: daily mood / anxiety / sleep check-ins
# mirrors the frontend DataEntry type

from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, Field, field_validator

from autitrack.services.storage import coerce_list
from autitrack.services.tables import DataEntry


Mood = Literal["great", "good", "okay", "not-good", "bad"]


class DataEntryCreate(BaseModel):
    """payload for a new check-in; client_id comes from the url"""
    mood: Mood
    anxiety_level: Optional[int] = Field(None, alias="anxietyLevel", ge=1, le=5, description="1-5")
    sleep_quality: Optional[int] = Field(None, alias="sleepQuality", ge=1, le=5, description="1-5")
    challenges: list[str] = Field(default_factory=list)
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("challenges", mode="before")
    @classmethod
    def _coerce_challenges(cls, value):
        return coerce_list(value)


class DataEntryResponse(BaseModel):
    id: int
    client_id: int = Field(..., alias="clientId")
    mood: str
    anxiety_level: Optional[int] = Field(None, alias="anxietyLevel")
    sleep_quality: Optional[int] = Field(None, alias="sleepQuality")
    challenges: list[str] = Field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_row(cls, entry: DataEntry) -> "DataEntryResponse":
        return cls(
            id=entry.id,
            clientId=entry.client_id,
            mood=entry.mood,
            anxietyLevel=entry.anxiety_level,
            sleepQuality=entry.sleep_quality,
            challenges=[str(c) for c in coerce_list(entry.challenges)],
            notes=entry.notes,
            createdAt=entry.created_at,
        )
