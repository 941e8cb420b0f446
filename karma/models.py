from datetime import datetime
from decimal import Decimal
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class RegisterActionRequest(BaseModel):
    action_id: str = Field(..., min_length=1, description="Unique action identifier")
    amount: Decimal = Field(..., ge=0, description="Karma granted per occurrence, floored to an integer")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "action_id": "receive_like",
            "amount": 1,
        }
    })


class UpdateActionRequest(BaseModel):
    amount: Decimal = Field(..., ge=0)


class RewardRequest(BaseModel):
    beneficiary: str = Field(..., min_length=1)
    action_id: str = Field(..., min_length=1)
    context: Optional[str] = Field(default=None, description="Audit reference, e.g. a model id")

    model_config = ConfigDict(json_schema_extra={
        "example": {
            "beneficiary": "alice",
            "action_id": "receive_follower",
            "context": "ab2HG376sddgBF",
        }
    })


class ActionReward(BaseModel):
    action_id: str
    reward: int

    model_config = ConfigDict(from_attributes=True)


class RewardResponse(BaseModel):
    beneficiary: str
    action_id: str
    amount: int
    pending: int
    message: str


class KarmaBalance(BaseModel):
    user_id: str
    settled: int
    pending: int

    model_config = ConfigDict(from_attributes=True)


class LedgerTotals(BaseModel):
    total_incremental_karma: int
    incremented_users_count: int


class FlushResult(BaseModel):
    settled_users: int
    settled_karma: int
    flushed_at: datetime
