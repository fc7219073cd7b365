# client note models: titled, dated logs kept by the practitioner

from datetime import datetime, timezone
from typing import Optional
from pydantic import BaseModel, Field

from autitrack.services.storage import coerce_list
from autitrack.services.tables import ClientNote


class NoteEntry(BaseModel):
    text: str
    date: Optional[datetime] = None


class NoteEntryText(BaseModel):
    """body for adding or editing a single entry"""
    text: str = Field(..., min_length=1)


class NoteCreate(BaseModel):
    title: str = Field(..., min_length=1)
    entries: list[NoteEntry] = Field(default_factory=list)


class NoteUpdate(BaseModel):
    """title change and/or wholesale replacement of the entries list"""
    title: Optional[str] = Field(None, min_length=1)
    entries: Optional[list[NoteEntry]] = None


class NoteResponse(BaseModel):
    id: int
    client_id: int = Field(..., alias="clientId")
    title: str
    entries: list[NoteEntry] = Field(default_factory=list)
    last_updated: Optional[datetime] = Field(None, alias="lastUpdated")
    created_at: Optional[datetime] = Field(None, alias="createdAt")

    model_config = {"populate_by_name": True}

    @classmethod
    def from_row(cls, note: ClientNote) -> "NoteResponse":
        return cls(
            id=note.id,
            clientId=note.client_id,
            title=note.title,
            entries=[NoteEntry(**e) for e in coerce_list(note.entries) if isinstance(e, dict)],
            lastUpdated=note.last_updated,
            createdAt=note.created_at,
        )


def serialize_entries(entries: list[NoteEntry]) -> list[dict]:
    """entries as stored in the json column, undated ones stamped now"""
    now = datetime.now(timezone.utc)
    return [
        {"text": e.text, "date": (e.date or now).isoformat()}
        for e in entries
    ]
