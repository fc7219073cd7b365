# notes router: titled client notes and their dated entries
# practitioner-only; every note inherits its client's ownership check

import logging

from fastapi import APIRouter, Depends, status

from autitrack.dependencies import (
    PractitionerIdentity, authorize_client, practitioner_client, require_practitioner,
)
from autitrack.errors import AuthorizationError
from autitrack.models.note import (
    NoteCreate, NoteEntryText, NoteResponse, NoteUpdate, serialize_entries,
)
from autitrack.models.user import MessageResponse
from autitrack.services.storage import Storage, get_storage
from autitrack.services.tables import Client, ClientNote

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["notes"])


async def owned_note(
    note_id: int,
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
) -> ClientNote:
    """a note whose client belongs to the calling practitioner"""
    note = await storage.get_client_note(note_id)
    if note is None:
        raise AuthorizationError("Not authorized to access this note")
    await authorize_client(identity, note.client_id, storage)
    return note


@router.get("/clients/{client_id}/notes", response_model=list[NoteResponse])
async def list_notes(
    client: Client = Depends(practitioner_client),
    storage: Storage = Depends(get_storage),
):
    notes = await storage.get_client_notes_by_client_id(client.id)
    return [NoteResponse.from_row(n) for n in notes]


@router.post("/clients/{client_id}/notes", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def create_note(
    body: NoteCreate,
    client: Client = Depends(practitioner_client),
    storage: Storage = Depends(get_storage),
):
    note = await storage.create_client_note({
        "client_id": client.id,
        "title": body.title,
        "entries": serialize_entries(body.entries),
    })
    logger.info(f"Note {note.id} created for client {client.id}")
    return NoteResponse.from_row(note)


@router.get("/notes/{note_id}", response_model=NoteResponse)
async def get_note(note: ClientNote = Depends(owned_note)):
    return NoteResponse.from_row(note)


@router.patch("/notes/{note_id}", response_model=NoteResponse)
async def update_note(
    body: NoteUpdate,
    note: ClientNote = Depends(owned_note),
    storage: Storage = Depends(get_storage),
):
    """rename a note and/or replace its entries wholesale"""
    values = {}
    if body.title is not None:
        values["title"] = body.title
    if body.entries is not None:
        values["entries"] = serialize_entries(body.entries)
    updated = await storage.update_client_note(note.id, values)
    return NoteResponse.from_row(updated)


@router.delete("/notes/{note_id}", response_model=MessageResponse)
async def delete_note(
    note: ClientNote = Depends(owned_note),
    storage: Storage = Depends(get_storage),
):
    await storage.delete_client_note(note.id)
    logger.info(f"Note {note.id} deleted")
    return MessageResponse(message="Note deleted successfully")


@router.post("/notes/{note_id}/entries", response_model=NoteResponse, status_code=status.HTTP_201_CREATED)
async def add_note_entry(
    body: NoteEntryText,
    note: ClientNote = Depends(owned_note),
    storage: Storage = Depends(get_storage),
):
    """prepend a new dated entry"""
    updated = await storage.add_note_entry(note.id, body.text)
    return NoteResponse.from_row(updated)


@router.patch("/notes/{note_id}/entries/{index}", response_model=NoteResponse)
async def edit_note_entry(
    index: int,
    body: NoteEntryText,
    note: ClientNote = Depends(owned_note),
    storage: Storage = Depends(get_storage),
):
    updated = await storage.edit_note_entry(note.id, index, body.text)
    return NoteResponse.from_row(updated)


@router.delete("/notes/{note_id}/entries/{index}", response_model=NoteResponse)
async def delete_note_entry(
    index: int,
    note: ClientNote = Depends(owned_note),
    storage: Storage = Depends(get_storage),
):
    updated = await storage.delete_note_entry(note.id, index)
    return NoteResponse.from_row(updated)
