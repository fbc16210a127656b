"""Instagram connection schemas."""
from datetime import datetime

from pydantic import BaseModel


class ConnectResponse(BaseModel):
    auth_url: str


class PlanDetails(BaseModel):
    is_premium: bool
    plan: str
    features: dict[str, bool]


class AccountStatus(BaseModel):
    connected: bool
    username: str | None = None
    user_id: str | None = None
    profile_picture_url: str | None = None
    token_degraded: bool = False
    updated_at: datetime | None = None
    plan: PlanDetails


class SyncResult(BaseModel):
    shop: str
    published: int
    fetched: int
