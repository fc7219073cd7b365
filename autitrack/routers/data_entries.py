# data entries router: list and submit mood / anxiety / sleep check-ins
# clients submit their own, practitioners read and submit for their clients

import logging

from fastapi import APIRouter, Depends, status

from autitrack.dependencies import owned_client
from autitrack.models.data_entry import DataEntryCreate, DataEntryResponse
from autitrack.services.storage import Storage, get_storage
from autitrack.services.tables import Client

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/clients/{client_id}/data", tags=["data-entries"])


@router.get("", response_model=list[DataEntryResponse])
async def list_data_entries(
    client: Client = Depends(owned_client),
    storage: Storage = Depends(get_storage),
):
    """all check-ins for a client, newest first"""
    entries = await storage.get_data_entries_by_client_id(client.id)
    return [DataEntryResponse.from_row(e) for e in entries]


@router.post("", response_model=DataEntryResponse, status_code=status.HTTP_201_CREATED)
async def create_data_entry(
    body: DataEntryCreate,
    client: Client = Depends(owned_client),
    storage: Storage = Depends(get_storage),
):
    values = body.model_dump()
    values["client_id"] = client.id
    entry = await storage.create_data_entry(values)
    logger.info(f"Data entry {entry.id} recorded for client {client.id}")
    return DataEntryResponse.from_row(entry)
