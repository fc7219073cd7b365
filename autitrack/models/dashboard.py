# dashboard models: practitioner overview counters

from pydantic import BaseModel, Field


class Statistics(BaseModel):
    """aggregate stats for the practitioner dashboard"""
    total_clients: int = Field(0, alias="totalClients")
    active_sessions: int = Field(0, alias="activeSessions")
    pending_reviews: int = Field(0, alias="pendingReviews")

    model_config = {"populate_by_name": True}
