# dashboard router: aggregate counters for the practitioner overview

import logging

from fastapi import APIRouter, Depends

from autitrack.dependencies import PractitionerIdentity, require_practitioner
from autitrack.models.dashboard import Statistics
from autitrack.services.storage import Storage, get_storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api", tags=["dashboard"])


@router.get("/statistics", response_model=Statistics)
async def get_statistics(
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    """active clients, upcoming confirmed sessions, and recent check-ins awaiting review"""
    return Statistics(
        totalClients=await storage.count_clients_by_practitioner_id(identity.id),
        activeSessions=await storage.count_active_sessions_by_practitioner_id(identity.id),
        pendingReviews=await storage.count_pending_reviews_by_practitioner_id(identity.id),
    )
