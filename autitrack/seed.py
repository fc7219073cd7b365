# seed script: creates a default practitioner and sample clients
# run once: python -m autitrack.seed

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional

from autitrack.config import settings
from autitrack.services.auth_service import hash_password_async
from autitrack.services.db import Database
from autitrack.services.storage import Storage

logger = logging.getLogger(__name__)

PRACTITIONER = {
    "username": "practitioner",
    "role": "practitioner",
    "name": "Dr. Rebecca Chen",
    "first_name": "Rebecca",
    "last_name": "Chen",
    "email": "rebecca.chen@example.com",
}

# sample clients for local development
CLIENTS = [
    {
        "username": "emma.wilson", "first_name": "Emma", "last_name": "Wilson",
        "date_of_birth": datetime(2015, 4, 12, tzinfo=timezone.utc),
        "diagnosis": "Autism Spectrum Disorder - Level 1",
        "guardian_name": "Sarah Wilson", "guardian_relation": "Mother",
        "guardian_phone": "(555) 123-4567", "guardian_email": "sarah.wilson@example.com",
        "treatment_plan": ["Social skills group weekly", "Parent coaching monthly"],
        "treatment_goals": ["Initiate peer conversations", "Reduce meltdowns at school"],
    },
    {
        "username": "liam.johnson", "first_name": "Liam", "last_name": "Johnson",
        "date_of_birth": datetime(2012, 9, 3, tzinfo=timezone.utc),
        "diagnosis": "Autism Spectrum Disorder - Level 2",
        "guardian_name": "Michael Johnson", "guardian_relation": "Father",
        "guardian_phone": "(555) 987-6543", "guardian_email": "m.johnson@example.com",
        "treatment_plan": ["Occupational therapy twice weekly"],
        "treatment_goals": ["Tolerate classroom noise", "Improve morning routine"],
    },
    {
        "username": "olivia.martinez", "first_name": "Olivia", "last_name": "Martinez",
        "date_of_birth": datetime(2017, 1, 28, tzinfo=timezone.utc),
        "diagnosis": "Sensory Processing Disorder",
        "guardian_name": "Ana Martinez", "guardian_relation": "Mother",
        "guardian_phone": "(555) 246-8101", "guardian_email": "ana.martinez@example.com",
        "treatment_plan": ["Sensory diet at home"],
        "treatment_goals": ["Sleep through the night"],
    },
]


async def seed(db: Database, password: Optional[str] = None) -> dict:
    """create the practitioner and sample clients, skipping anything that exists"""
    hashed_pw = await hash_password_async(password or settings.SEED_PASSWORD)
    created = {"practitioner": 0, "clients": 0}

    async with db.session() as session:
        storage = Storage(session)

        practitioner = await storage.get_user_by_username(PRACTITIONER["username"])
        if practitioner:
            logger.info(f"Practitioner already exists: {practitioner.username} (id: {practitioner.id})")
        else:
            practitioner = await storage.create_user({**PRACTITIONER, "password": hashed_pw})
            created["practitioner"] = 1
            logger.info(f"Created practitioner: {practitioner.name} (id: {practitioner.id})")

        for profile in CLIENTS:
            profile = dict(profile)
            username = profile.pop("username")
            if await storage.get_user_by_username(username):
                logger.info(f"Client already exists: {username}")
                continue

            user_values = {
                "username": username,
                "password": hashed_pw,
                "role": "client",
                "name": f"{profile['first_name']} {profile['last_name']}",
                "first_name": profile["first_name"],
                "last_name": profile["last_name"],
            }
            client, _ = await storage.create_client_with_user(
                user_values, {**profile, "practitioner_id": practitioner.id},
            )
            await storage.create_session({
                "client_id": client.id,
                "practitioner_id": practitioner.id,
                "date": datetime.now(timezone.utc) + timedelta(days=7),
                "status": "confirmed",
            })
            created["clients"] += 1
            logger.info(f"Created client: {user_values['name']} (id: {client.id})")

    logger.info(f"Seed complete: {created}")
    return created


async def main():
    db = Database()
    await db.connect()
    try:
        await seed(db)
    finally:
        await db.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s - %(levelname)s - %(message)s")
    asyncio.run(main())
