# clients router: list, create, retrieve, update, archive and delete clients
# practitioners manage their own clients, client users see only their own profile

import logging

from fastapi import APIRouter, Depends, status

from autitrack.dependencies import (
    ClientIdentity, Identity, PractitionerIdentity,
    get_identity, practitioner_client, require_client, require_practitioner,
)
from autitrack.errors import AuthorizationError, StorageError, ValidationError
from autitrack.models.client import (
    ClientCreate, ClientResponse, ClientSelfUpdate, ClientUpdate,
    ClientWithUserCreate, ClientWithUserResponse, ClientWithUserResult,
)
from autitrack.models.user import MessageResponse, PasswordReset, UserResponse
from autitrack.services.auth_service import hash_password_async
from autitrack.services.storage import Storage, get_storage
from autitrack.services.tables import Client

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/clients", tags=["clients"])

CLIENT_FIELDS = (
    "first_name", "last_name", "date_of_birth", "diagnosis",
    "guardian_name", "guardian_relation", "guardian_phone", "guardian_email",
    "treatment_plan", "treatment_goals", "avatar_url", "notes",
)
REQUIRED_FIELDS = ("first_name", "last_name", "treatment_plan", "treatment_goals")


def _client_values(body, exclude_unset: bool = False) -> dict:
    data = body.model_dump(exclude_unset=exclude_unset)
    values = {k: v for k, v in data.items() if k in CLIENT_FIELDS}
    # explicit nulls cannot clear not-null columns
    for key in REQUIRED_FIELDS:
        if key in values and values[key] is None:
            del values[key]
    return values


@router.get("", response_model=list[ClientWithUserResponse])
async def list_clients(
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    """list the practitioner's active (non-archived) clients"""
    rows = await storage.get_clients_by_practitioner_id(identity.id)
    return [ClientWithUserResponse.from_rows(client, user) for client, user in rows]


@router.get("/archived", response_model=list[ClientWithUserResponse])
async def list_archived_clients(
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    rows = await storage.get_clients_by_practitioner_id(identity.id, archived=True)
    return [ClientWithUserResponse.from_rows(client, user) for client, user in rows]


@router.post("", response_model=ClientResponse, status_code=status.HTTP_201_CREATED)
async def create_client(
    body: ClientCreate,
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    """create a client profile for an existing client-role user"""
    user = await storage.get_user(body.user_id)
    if user is None or user.role != "client":
        raise ValidationError("userId must reference an existing client user")
    if await storage.get_client_by_user_id(user.id):
        raise ValidationError("User already has a client profile")

    values = _client_values(body)
    values.update(user_id=user.id, practitioner_id=identity.id)
    client = await storage.create_client(values)
    logger.info(f"Practitioner {identity.id} created client {client.id}")
    return ClientResponse.from_row(client)


@router.post("/with-user", response_model=ClientWithUserResult, status_code=status.HTTP_201_CREATED)
async def create_client_with_user(
    body: ClientWithUserCreate,
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    """create a client login and its profile together, without logging in as it"""
    if await storage.get_user_by_username(body.user.username):
        raise ValidationError("Username already exists")

    user_values = body.user.model_dump()
    user_values["password"] = await hash_password_async(body.user.password)
    user_values["role"] = "client"

    client_values = _client_values(body)
    client_values["practitioner_id"] = identity.id

    client, user = await storage.create_client_with_user(user_values, client_values)
    logger.info(f"Practitioner {identity.id} created client {client.id} with user {user.id}")
    return ClientWithUserResult(
        client=ClientResponse.from_row(client),
        user=UserResponse.from_row(user),
    )


@router.get("/me", response_model=ClientWithUserResponse)
async def get_my_client_profile(
    identity: ClientIdentity = Depends(require_client),
    storage: Storage = Depends(get_storage),
):
    """the calling client user's own profile"""
    if identity.client_id is None:
        raise AuthorizationError("No client profile is linked to this account")
    client = await storage.get_client(identity.client_id)
    return ClientWithUserResponse.from_rows(client, identity.user)


@router.patch("/me", response_model=ClientResponse)
async def update_my_client_profile(
    body: ClientSelfUpdate,
    identity: ClientIdentity = Depends(require_client),
    storage: Storage = Depends(get_storage),
):
    """self-service update of guardian contact details and avatar"""
    if identity.client_id is None:
        raise AuthorizationError("No client profile is linked to this account")
    client = await storage.update_client(identity.client_id, body.model_dump(exclude_unset=True))
    return ClientResponse.from_row(client)


@router.get("/{client_id}", response_model=ClientWithUserResponse)
async def get_client(
    client_id: int,
    identity: Identity = Depends(get_identity),
    storage: Storage = Depends(get_storage),
):
    """get one client, visible to its practitioner and to the client user itself"""
    row = await storage.get_client_with_user(client_id)
    if row is not None:
        client, user = row
        if isinstance(identity, PractitionerIdentity) and client.practitioner_id == identity.id:
            return ClientWithUserResponse.from_rows(client, user)
        if isinstance(identity, ClientIdentity) and client.user_id == identity.id:
            return ClientWithUserResponse.from_rows(client, user)

    logger.warning(f"Denied access to client {client_id} for user {identity.id}")
    raise AuthorizationError()


@router.patch("/{client_id}", response_model=ClientResponse)
async def update_client(
    body: ClientUpdate,
    client: Client = Depends(practitioner_client),
    storage: Storage = Depends(get_storage),
):
    updated = await storage.update_client(client.id, _client_values(body, exclude_unset=True))
    return ClientResponse.from_row(updated)


@router.delete("/{client_id}", response_model=MessageResponse)
async def delete_client(
    client: Client = Depends(practitioner_client),
    storage: Storage = Depends(get_storage),
):
    """delete a client with its notes, data entries, sessions and login"""
    if not await storage.delete_client(client.id):
        raise StorageError("Failed to delete client")
    return MessageResponse(message="Client deleted successfully")


@router.patch("/{client_id}/archive", response_model=ClientResponse)
async def archive_client(
    client: Client = Depends(practitioner_client),
    storage: Storage = Depends(get_storage),
):
    updated = await storage.set_client_archived(client.id, True)
    logger.info(f"Archived client {client.id}")
    return ClientResponse.from_row(updated)


@router.patch("/{client_id}/unarchive", response_model=ClientResponse)
async def unarchive_client(
    client: Client = Depends(practitioner_client),
    storage: Storage = Depends(get_storage),
):
    updated = await storage.set_client_archived(client.id, False)
    logger.info(f"Unarchived client {client.id}")
    return ClientResponse.from_row(updated)


@router.patch("/{client_id}/reset-password", response_model=MessageResponse)
async def reset_client_password(
    body: PasswordReset,
    client: Client = Depends(practitioner_client),
    storage: Storage = Depends(get_storage),
):
    """set a new password on the client's login"""
    hashed = await hash_password_async(body.password)
    await storage.update_user(client.user_id, {"password": hashed})
    logger.info(f"Password reset for client {client.id}")
    return MessageResponse(message="Client password has been reset")
