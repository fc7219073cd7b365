# user models: auth, profile, and password schemas
# mirrors the frontend User type (camelCase on the wire)

from datetime import datetime
from typing import Optional, Literal
from pydantic import BaseModel, Field

from autitrack.services.tables import User


Role = Literal["practitioner", "client"]


# auth

class UserCreate(BaseModel):
    username: str = Field(..., min_length=1, description="unique login name")
    password: str = Field(..., min_length=6, description="plaintext password (min 6 chars)")
    name: str = Field(..., min_length=1, description="display name")
    role: Role = "client"
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")

    model_config = {"populate_by_name": True}


class UserLogin(BaseModel):
    """email is the primary identifier, username the fallback"""
    email: Optional[str] = None
    username: Optional[str] = None
    password: str


# user responses

class UserResponse(BaseModel):
    """a user row with the password hash stripped"""
    id: int
    username: str
    role: Role
    name: str
    first_name: Optional[str] = Field(None, alias="firstName")
    last_name: Optional[str] = Field(None, alias="lastName")
    email: Optional[str] = None
    phone: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_row(cls, user: User) -> "UserResponse":
        return cls(
            id=user.id,
            username=user.username,
            role=user.role,
            name=user.name,
            firstName=user.first_name,
            lastName=user.last_name,
            email=user.email,
            phone=user.phone,
            bio=user.bio,
            avatarUrl=user.avatar_url,
            createdAt=user.created_at,
        )


# profile update

class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(None, min_length=1)
    first_name: Optional[str] = Field(None, alias="firstName", min_length=2)
    last_name: Optional[str] = Field(None, alias="lastName", min_length=2)
    email: Optional[str] = Field(None, pattern=r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
    phone: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = Field(None, alias="avatarUrl")

    model_config = {"populate_by_name": True}


# passwords

class PasswordChange(BaseModel):
    current_password: str = Field(..., alias="currentPassword", min_length=1)
    new_password: str = Field(..., alias="newPassword", min_length=6)

    model_config = {"populate_by_name": True}


class PasswordReset(BaseModel):
    """practitioner-initiated reset of a client's password"""
    password: str = Field(..., min_length=6)


class MessageResponse(BaseModel):
    message: str
