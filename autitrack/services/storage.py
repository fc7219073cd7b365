# storage layer: every read and write against the relational store
# one method per entity per crud need, plus the dashboard counters

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from fastapi import Depends
from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from autitrack.config import settings
from autitrack.errors import ValidationError
from autitrack.services.db import get_db_session
from autitrack.services.tables import (
    Client, ClientNote, DataEntry, Session, User, UserSession, utcnow,
)

logger = logging.getLogger(__name__)

LIST_FIELDS = ("treatment_plan", "treatment_goals", "challenges", "entries")


def coerce_list(value: Any) -> list:
    """normalize a json list column: None -> [], "a\\nb" -> ["a", "b"]"""
    if value is None:
        return []
    if isinstance(value, str):
        return [line.strip() for line in value.splitlines() if line.strip()]
    if isinstance(value, (list, tuple)):
        return list(value)
    return [value]


def _shape(values: dict) -> dict:
    """coerce array-typed fields before they hit the database"""
    shaped = dict(values)
    for key in LIST_FIELDS:
        if key in shaped:
            shaped[key] = coerce_list(shaped[key])
    return shaped


class Storage:
    """data access over one AsyncSession (one per request)"""

    def __init__(self, session: AsyncSession):
        self.session = session

    # users

    async def get_user(self, user_id: int) -> Optional[User]:
        return await self.session.get(User, user_id, populate_existing=True)

    async def get_user_by_username(self, username: str) -> Optional[User]:
        result = await self.session.execute(select(User).where(User.username == username))
        return result.scalar_one_or_none()

    async def get_user_by_email(self, email: str) -> Optional[User]:
        # email is not unique, the oldest account wins
        result = await self.session.execute(
            select(User).where(User.email == email).order_by(User.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def create_user(self, values: dict) -> User:
        """insert a user; raises ValidationError if the username is taken"""
        user = User(**values)
        self.session.add(user)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ValidationError("Username already exists")
        return user

    async def update_user(self, user_id: int, values: dict) -> Optional[User]:
        user = await self.get_user(user_id)
        if user is None:
            return None
        for key, value in values.items():
            setattr(user, key, value)
        try:
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ValidationError("Username already exists")
        return user

    # clients

    async def get_client(self, client_id: int) -> Optional[Client]:
        return await self.session.get(Client, client_id, populate_existing=True)

    async def get_client_with_user(self, client_id: int) -> Optional[tuple[Client, User]]:
        result = await self.session.execute(
            select(Client, User).join(User, Client.user_id == User.id).where(Client.id == client_id)
        )
        row = result.first()
        if row is None:
            return None
        return row[0], row[1]

    async def get_client_by_user_id(self, user_id: int) -> Optional[Client]:
        result = await self.session.execute(
            select(Client).where(Client.user_id == user_id).order_by(Client.id).limit(1)
        )
        return result.scalar_one_or_none()

    async def get_clients_by_practitioner_id(
        self, practitioner_id: int, archived: bool = False,
    ) -> list[tuple[Client, User]]:
        result = await self.session.execute(
            select(Client, User)
            .join(User, Client.user_id == User.id)
            .where(Client.practitioner_id == practitioner_id, Client.archived == archived)
            .order_by(Client.last_name, Client.first_name, Client.id)
        )
        return [(client, user) for client, user in result.all()]

    async def create_client(self, values: dict) -> Client:
        client = Client(**_shape(values))
        self.session.add(client)
        await self.session.commit()
        return client

    async def create_client_with_user(
        self, user_values: dict, client_values: dict,
    ) -> tuple[Client, User]:
        """create the client's login and profile in one transaction"""
        user = User(**user_values)
        self.session.add(user)
        try:
            await self.session.flush()
            client = Client(**_shape({**client_values, "user_id": user.id}))
            self.session.add(client)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            raise ValidationError("Username already exists")
        return client, user

    async def update_client(self, client_id: int, values: dict) -> Optional[Client]:
        client = await self.get_client(client_id)
        if client is None:
            return None
        for key, value in _shape(values).items():
            setattr(client, key, value)
        await self.session.commit()
        return client

    async def set_client_archived(self, client_id: int, archived: bool) -> Optional[Client]:
        return await self.update_client(client_id, {"archived": archived})

    async def delete_client(self, client_id: int) -> bool:
        """delete a client and everything hanging off it.

        notes, data entries, sessions, the client row, then the linked user
        (and its auth sessions) go in one transaction; any failure rolls
        the whole cascade back and returns False.
        """
        client = await self.get_client(client_id)
        if client is None:
            return False
        user_id = client.user_id

        try:
            await self.session.execute(delete(ClientNote).where(ClientNote.client_id == client_id))
            await self.session.execute(delete(DataEntry).where(DataEntry.client_id == client_id))
            await self.session.execute(delete(Session).where(Session.client_id == client_id))
            await self.session.execute(delete(Client).where(Client.id == client_id))
            await self.session.execute(delete(UserSession).where(UserSession.user_id == user_id))
            result = await self.session.execute(delete(User).where(User.id == user_id))
            if result.rowcount != 1:
                raise SQLAlchemyError(f"linked user {user_id} was not deleted")
            await self.session.commit()
        except SQLAlchemyError:
            await self.session.rollback()
            logger.exception(f"Cascade delete failed for client {client_id}, rolled back")
            return False

        self.session.expunge_all()
        logger.info(f"Deleted client {client_id} and linked user {user_id}")
        return True

    # data entries

    async def get_data_entry(self, entry_id: int) -> Optional[DataEntry]:
        return await self.session.get(DataEntry, entry_id)

    async def get_data_entries_by_client_id(self, client_id: int) -> list[DataEntry]:
        result = await self.session.execute(
            select(DataEntry)
            .where(DataEntry.client_id == client_id)
            .order_by(DataEntry.created_at.desc(), DataEntry.id.desc())
        )
        return list(result.scalars().all())

    async def create_data_entry(self, values: dict) -> DataEntry:
        entry = DataEntry(**_shape(values))
        self.session.add(entry)
        await self.session.commit()
        return entry

    # sessions (appointments)

    async def get_session(self, session_id: int) -> Optional[Session]:
        return await self.session.get(Session, session_id, populate_existing=True)

    async def get_sessions_by_client_id(self, client_id: int) -> list[Session]:
        result = await self.session.execute(
            select(Session).where(Session.client_id == client_id).order_by(Session.date, Session.id)
        )
        return list(result.scalars().all())

    async def get_sessions_by_practitioner_id(self, practitioner_id: int) -> list[Session]:
        result = await self.session.execute(
            select(Session)
            .where(Session.practitioner_id == practitioner_id)
            .order_by(Session.date, Session.id)
        )
        return list(result.scalars().all())

    async def create_session(self, values: dict) -> Session:
        appointment = Session(**values)
        self.session.add(appointment)
        await self.session.commit()
        return appointment

    async def update_session(self, session_id: int, values: dict) -> Optional[Session]:
        appointment = await self.get_session(session_id)
        if appointment is None:
            return None
        for key, value in values.items():
            setattr(appointment, key, value)
        await self.session.commit()
        return appointment

    # client notes

    async def get_client_note(self, note_id: int) -> Optional[ClientNote]:
        return await self.session.get(ClientNote, note_id, populate_existing=True)

    async def get_client_notes_by_client_id(self, client_id: int) -> list[ClientNote]:
        result = await self.session.execute(
            select(ClientNote)
            .where(ClientNote.client_id == client_id)
            .order_by(ClientNote.last_updated.desc(), ClientNote.id.desc())
        )
        return list(result.scalars().all())

    async def create_client_note(self, values: dict) -> ClientNote:
        now = utcnow()
        note = ClientNote(**_shape(values), last_updated=now, created_at=now)
        self.session.add(note)
        await self.session.commit()
        return note

    async def update_client_note(self, note_id: int, values: dict) -> Optional[ClientNote]:
        note = await self.get_client_note(note_id)
        if note is None:
            return None
        for key, value in _shape(values).items():
            setattr(note, key, value)
        note.last_updated = utcnow()
        await self.session.commit()
        return note

    async def add_note_entry(self, note_id: int, text: str) -> Optional[ClientNote]:
        """prepend a dated entry, newest entries come first"""
        note = await self.get_client_note(note_id)
        if note is None:
            return None
        now = utcnow()
        entry = {"text": text, "date": now.isoformat()}
        # reassign so the json column is flagged dirty
        note.entries = [entry] + coerce_list(note.entries)
        note.last_updated = now
        await self.session.commit()
        return note

    async def edit_note_entry(self, note_id: int, index: int, text: str) -> Optional[ClientNote]:
        note = await self.get_client_note(note_id)
        if note is None:
            return None
        entries = coerce_list(note.entries)
        if not 0 <= index < len(entries):
            raise ValidationError("Entry index out of range")
        entries[index] = {**entries[index], "text": text}
        note.entries = entries
        note.last_updated = utcnow()
        await self.session.commit()
        return note

    async def delete_note_entry(self, note_id: int, index: int) -> Optional[ClientNote]:
        note = await self.get_client_note(note_id)
        if note is None:
            return None
        entries = coerce_list(note.entries)
        if not 0 <= index < len(entries):
            raise ValidationError("Entry index out of range")
        del entries[index]
        note.entries = entries
        note.last_updated = utcnow()
        await self.session.commit()
        return note

    async def delete_client_note(self, note_id: int) -> bool:
        result = await self.session.execute(delete(ClientNote).where(ClientNote.id == note_id))
        await self.session.commit()
        return result.rowcount == 1

    # statistics

    async def count_clients_by_practitioner_id(self, practitioner_id: int) -> int:
        result = await self.session.execute(
            select(func.count(Client.id)).where(
                Client.practitioner_id == practitioner_id,
                Client.archived.is_(False),
            )
        )
        return result.scalar_one()

    async def count_active_sessions_by_practitioner_id(self, practitioner_id: int) -> int:
        """confirmed sessions still in the future"""
        now = datetime.now(timezone.utc)
        result = await self.session.execute(
            select(func.count(Session.id)).where(
                Session.practitioner_id == practitioner_id,
                Session.status == "confirmed",
                Session.date > now,
            )
        )
        return result.scalar_one()

    async def count_pending_reviews_by_practitioner_id(self, practitioner_id: int) -> int:
        """data entries from this practitioner's clients inside the review window"""
        since = datetime.now(timezone.utc) - timedelta(hours=settings.PENDING_REVIEW_WINDOW_HOURS)
        result = await self.session.execute(
            select(func.count(DataEntry.id))
            .join(Client, DataEntry.client_id == Client.id)
            .where(
                Client.practitioner_id == practitioner_id,
                DataEntry.created_at > since,
            )
        )
        return result.scalar_one()


async def get_storage(session: AsyncSession = Depends(get_db_session)) -> Storage:
    """dependency injection for storage access"""
    return Storage(session)
