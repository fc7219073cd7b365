# sessions router: appointment scheduling
# practitioners create and update, clients read their own schedule

import logging

from fastapi import APIRouter, Depends, status

from autitrack.dependencies import (
    ClientIdentity, Identity, PractitionerIdentity,
    authorize_client, get_identity, require_practitioner,
)
from autitrack.errors import AuthorizationError, NotFoundError
from autitrack.models.session import SessionCreate, SessionResponse, SessionUpdate
from autitrack.services.storage import Storage, get_storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/sessions", tags=["sessions"])


@router.get("", response_model=list[SessionResponse])
async def list_sessions(
    identity: Identity = Depends(get_identity),
    storage: Storage = Depends(get_storage),
):
    """practitioners see all their sessions, clients see their own, ascending by date"""
    if isinstance(identity, PractitionerIdentity):
        sessions = await storage.get_sessions_by_practitioner_id(identity.id)
    elif isinstance(identity, ClientIdentity):
        if identity.client_id is None:
            raise NotFoundError("Client profile not found")
        sessions = await storage.get_sessions_by_client_id(identity.client_id)
    else:
        raise AuthorizationError("Unauthorized")
    return [SessionResponse.from_row(s) for s in sessions]


@router.post("", response_model=SessionResponse, status_code=status.HTTP_201_CREATED)
async def create_session(
    body: SessionCreate,
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    """schedule a session with one of the practitioner's clients"""
    try:
        await authorize_client(identity, body.client_id, storage)
    except AuthorizationError:
        raise AuthorizationError("Not authorized to create sessions for this client")

    values = body.model_dump()
    values["practitioner_id"] = identity.id
    appointment = await storage.create_session(values)
    logger.info(f"Session {appointment.id} scheduled for client {body.client_id}")
    return SessionResponse.from_row(appointment)


@router.patch("/{session_id}", response_model=SessionResponse)
async def update_session(
    session_id: int,
    body: SessionUpdate,
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    """reschedule, change status, or edit notes"""
    appointment = await storage.get_session(session_id)
    if appointment is None or appointment.practitioner_id != identity.id:
        raise AuthorizationError("Not authorized to update this session")

    values = body.model_dump(exclude_unset=True)
    # date and status are not nullable
    for key in ("date", "status"):
        if key in values and values[key] is None:
            del values[key]
    updated = await storage.update_session(session_id, values)
    return SessionResponse.from_row(updated)
