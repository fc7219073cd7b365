# practitioners router: the practitioner's own profile

import logging

from fastapi import APIRouter, Depends

from autitrack.dependencies import PractitionerIdentity, require_practitioner
from autitrack.models.user import ProfileUpdate, UserResponse
from autitrack.services.storage import Storage, get_storage

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/practitioners", tags=["practitioners"])


@router.get("/me", response_model=UserResponse)
async def get_profile(identity: PractitionerIdentity = Depends(require_practitioner)):
    return UserResponse.from_row(identity.user)


@router.patch("/me", response_model=UserResponse)
async def update_profile(
    body: ProfileUpdate,
    identity: PractitionerIdentity = Depends(require_practitioner),
    storage: Storage = Depends(get_storage),
):
    """update name, contact details, bio or avatar url"""
    values = body.model_dump(exclude_unset=True)
    if values.get("name", "") is None:
        del values["name"]
    user = await storage.update_user(identity.id, values)
    logger.info(f"Practitioner {identity.id} updated profile fields: {sorted(values)}")
    return UserResponse.from_row(user)
