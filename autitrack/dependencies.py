# fastapi dependency injection
# session-cookie authentication, identity narrowing and ownership checks

import logging
from dataclasses import dataclass
from typing import Optional, Union

from fastapi import Depends, Request

from autitrack.config import settings
from autitrack.errors import AuthenticationError, AuthorizationError
from autitrack.services.session_store import SessionStore
from autitrack.services.storage import Storage, get_storage
from autitrack.services.tables import Client, User

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PractitionerIdentity:
    id: int
    user: User


@dataclass(frozen=True)
class ClientIdentity:
    """a client-role user; client_id is None until a profile is linked"""
    id: int
    user: User
    client_id: Optional[int] = None
    practitioner_id: Optional[int] = None


Identity = Union[PractitionerIdentity, ClientIdentity]


def get_session_store(request: Request) -> SessionStore:
    """dependency injection for the app-scoped session store"""
    return request.app.state.session_store


def get_session_id(request: Request) -> Optional[str]:
    return request.cookies.get(settings.SESSION_COOKIE_NAME)


async def get_current_user(
    sid: Optional[str] = Depends(get_session_id),
    store: SessionStore = Depends(get_session_store),
    storage: Storage = Depends(get_storage),
) -> User:
    """resolve the session cookie to a freshly loaded user row"""
    if not sid:
        raise AuthenticationError()

    user_id = await store.get(sid)
    if user_id is None:
        raise AuthenticationError()

    # always re-read so profile changes apply on the next request
    user = await storage.get_user(user_id)
    if user is None:
        await store.destroy(sid)
        raise AuthenticationError()
    return user


async def get_identity(
    user: User = Depends(get_current_user),
    storage: Storage = Depends(get_storage),
) -> Identity:
    """narrow the role string once, handlers branch on the identity type"""
    if user.role == "practitioner":
        return PractitionerIdentity(id=user.id, user=user)
    if user.role == "client":
        client = await storage.get_client_by_user_id(user.id)
        return ClientIdentity(
            id=user.id,
            user=user,
            client_id=client.id if client else None,
            practitioner_id=client.practitioner_id if client else None,
        )
    raise AuthorizationError("Unauthorized")


async def require_practitioner(identity: Identity = Depends(get_identity)) -> PractitionerIdentity:
    if not isinstance(identity, PractitionerIdentity):
        raise AuthorizationError("Unauthorized. Practitioners only.")
    return identity


async def require_client(identity: Identity = Depends(get_identity)) -> ClientIdentity:
    if not isinstance(identity, ClientIdentity):
        raise AuthorizationError("Unauthorized. Clients only.")
    return identity


async def authorize_client(identity: Identity, client_id: int, storage: Storage) -> Client:
    """return the client row if the identity owns it, otherwise 403.

    a missing row is reported as 403 too, so other practitioners'
    client ids cannot be enumerated.
    """
    client = await storage.get_client(client_id)
    if isinstance(identity, PractitionerIdentity):
        if client is not None and client.practitioner_id == identity.id:
            return client
    elif isinstance(identity, ClientIdentity):
        if client is not None and client.user_id == identity.id:
            return client
    logger.warning(f"Denied access to client {client_id} for user {identity.id}")
    raise AuthorizationError()


async def practitioner_client(
    client_id: int,
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
) -> Client:
    """path dependency: a client row owned by the calling practitioner"""
    return await authorize_client(identity, client_id, storage)


async def owned_client(
    client_id: int,
    identity: Identity = Depends(get_identity),
    storage: Storage = Depends(get_storage),
) -> Client:
    """path dependency: a client row visible to the caller (practitioner or self)"""
    return await authorize_client(identity, client_id, storage)
