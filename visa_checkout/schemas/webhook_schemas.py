from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, field_validator


class WiseEventData(BaseModel):
    model_config = ConfigDict(extra="allow")

    resource: Optional[Any] = None
    current_state: Optional[str] = None
    previous_state: Optional[str] = None
    occurred_at: Optional[str] = None
    transfer_id: Optional[str] = None
    profile_id: Optional[str] = None

    # Wise sends numeric ids
    @field_validator("transfer_id", "profile_id", mode="before")
    @classmethod
    def _stringify_id(cls, value):
        if value is None:
            return None
        return str(value)


class WiseWebhookEvent(BaseModel):
    model_config = ConfigDict(extra="allow")

    subscription_id: Optional[str] = None
    event_type: str
    data: WiseEventData
