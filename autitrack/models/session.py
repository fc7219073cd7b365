# session models: scheduled appointments (not auth sessions)

from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, Field, field_validator

from autitrack.services.tables import Session, to_utc


SessionStatus = Literal["pending", "confirmed", "completed", "cancelled"]


class SessionCreate(BaseModel):
    client_id: int = Field(..., alias="clientId")
    date: datetime
    status: SessionStatus = "pending"
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("date")
    @classmethod
    def _date_in_utc(cls, value):
        return to_utc(value)


class SessionUpdate(BaseModel):
    date: Optional[datetime] = None
    status: Optional[SessionStatus] = None
    notes: Optional[str] = None

    @field_validator("date")
    @classmethod
    def _date_in_utc(cls, value):
        return to_utc(value)


class SessionResponse(BaseModel):
    id: int
    client_id: int = Field(..., alias="clientId")
    practitioner_id: int = Field(..., alias="practitionerId")
    date: datetime
    status: SessionStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_row(cls, appointment: Session) -> "SessionResponse":
        return cls(
            id=appointment.id,
            clientId=appointment.client_id,
            practitionerId=appointment.practitioner_id,
            date=appointment.date,
            status=appointment.status,
            notes=appointment.notes,
            createdAt=appointment.created_at,
        )
