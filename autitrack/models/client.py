# client models: practitioner-managed client profiles
# mirrors the frontend Client and ClientWithUser types

from datetime import datetime
from typing import Optional
from pydantic import BaseModel, Field, field_validator

from autitrack.models.user import UserCreate, UserResponse
from autitrack.services.storage import coerce_list
from autitrack.services.tables import Client, to_utc


class ClientFields(BaseModel):
    """profile fields shared by create and update payloads"""
    first_name: Optional[str] = Field(None, alias="firstName", min_length=1)
    last_name: Optional[str] = Field(None, alias="lastName", min_length=1)
    date_of_birth: Optional[datetime] = Field(None, alias="dateOfBirth")
    diagnosis: Optional[str] = None
    guardian_name: Optional[str] = Field(None, alias="guardianName")
    guardian_relation: Optional[str] = Field(None, alias="guardianRelation")
    guardian_phone: Optional[str] = Field(None, alias="guardianPhone")
    guardian_email: Optional[str] = Field(None, alias="guardianEmail")
    treatment_plan: Optional[list[str]] = Field(None, alias="treatmentPlan")
    treatment_goals: Optional[list[str]] = Field(None, alias="treatmentGoals")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    notes: Optional[str] = None

    model_config = {"populate_by_name": True}

    @field_validator("treatment_plan", "treatment_goals", mode="before")
    @classmethod
    def _coerce_list(cls, value):
        if value is None:
            return value
        return coerce_list(value)

    @field_validator("date_of_birth")
    @classmethod
    def _date_of_birth_in_utc(cls, value):
        return to_utc(value)


class ClientCreate(ClientFields):
    """payload for POST /api/clients: links an existing client user"""
    user_id: int = Field(..., alias="userId")
    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field(..., alias="lastName", min_length=1)


class ClientWithUserCreate(ClientFields):
    """payload for POST /api/clients/with-user: nested user plus profile"""
    user: UserCreate
    first_name: str = Field(..., alias="firstName", min_length=1)
    last_name: str = Field(..., alias="lastName", min_length=1)


class ClientUpdate(ClientFields):
    pass


class ClientSelfUpdate(BaseModel):
    """fields a client user may change on their own profile"""
    guardian_name: Optional[str] = Field(None, alias="guardianName")
    guardian_relation: Optional[str] = Field(None, alias="guardianRelation")
    guardian_phone: Optional[str] = Field(None, alias="guardianPhone")
    guardian_email: Optional[str] = Field(None, alias="guardianEmail")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")

    model_config = {"populate_by_name": True}


class ClientResponse(BaseModel):
    id: int
    user_id: int = Field(..., alias="userId")
    practitioner_id: int = Field(..., alias="practitionerId")
    first_name: str = Field(..., alias="firstName")
    last_name: str = Field(..., alias="lastName")
    date_of_birth: Optional[datetime] = Field(None, alias="dateOfBirth")
    diagnosis: Optional[str] = None
    guardian_name: Optional[str] = Field(None, alias="guardianName")
    guardian_relation: Optional[str] = Field(None, alias="guardianRelation")
    guardian_phone: Optional[str] = Field(None, alias="guardianPhone")
    guardian_email: Optional[str] = Field(None, alias="guardianEmail")
    treatment_plan: list[str] = Field(default_factory=list, alias="treatmentPlan")
    treatment_goals: list[str] = Field(default_factory=list, alias="treatmentGoals")
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    notes: Optional[str] = None
    archived: bool = False
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_row(cls, client: Client) -> "ClientResponse":
        return cls(
            id=client.id,
            userId=client.user_id,
            practitionerId=client.practitioner_id,
            firstName=client.first_name,
            lastName=client.last_name,
            dateOfBirth=client.date_of_birth,
            diagnosis=client.diagnosis,
            guardianName=client.guardian_name,
            guardianRelation=client.guardian_relation,
            guardianPhone=client.guardian_phone,
            guardianEmail=client.guardian_email,
            treatmentPlan=[str(item) for item in coerce_list(client.treatment_plan)],
            treatmentGoals=[str(item) for item in coerce_list(client.treatment_goals)],
            avatarUrl=client.avatar_url,
            notes=client.notes,
            archived=bool(client.archived),
            createdAt=client.created_at,
        )


class ClientWithUserResponse(ClientResponse):
    user: UserResponse

    @classmethod
    def from_rows(cls, client: Client, user) -> "ClientWithUserResponse":
        data = ClientResponse.from_row(client).model_dump()
        return cls(**data, user=UserResponse.from_row(user))


class ClientWithUserResult(BaseModel):
    """response for POST /api/clients/with-user"""
    client: ClientResponse
    user: UserResponse
