import logging
import os

from fastapi import FastAPI, Header, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .models import (
    RegisterActionRequest, UpdateActionRequest, RewardRequest,
    ActionReward, RewardResponse, KarmaBalance, LedgerTotals, FlushResult,
)
from .service import (
    KarmaStore, KarmaStoreError, UnauthorizedError,
    DuplicateActionError, UnknownActionError,
)

logger = logging.getLogger(__name__)

KARMA_OWNER = os.getenv("KARMA_OWNER", "owner")

app = FastAPI(
    title="Karma Store API",
    description="Action rewards with pending karma accrual and owner-triggered settlement",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

karma_store = KarmaStore(owner=KARMA_OWNER)


def _to_http_error(e: KarmaStoreError) -> HTTPException:
    if isinstance(e, UnauthorizedError):
        return HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(e))
    if isinstance(e, DuplicateActionError):
        return HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(e))
    if isinstance(e, UnknownActionError):
        return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(e))
    return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))


@app.get("/health", tags=["System"])
def health_check():
    return {"status": "healthy", "service": "karma-store"}


@app.get("/actions", response_model=list[ActionReward], tags=["Actions"])
def list_actions() -> list[ActionReward]:
    return karma_store.list_actions()


@app.post("/actions", response_model=ActionReward, status_code=status.HTTP_201_CREATED, tags=["Actions"])
def register_action(request: RegisterActionRequest, x_caller_id: str = Header(...)) -> ActionReward:
    try:
        return karma_store.register(x_caller_id, request.action_id, request.amount)
    except KarmaStoreError as e:
        raise _to_http_error(e)


@app.get("/actions/{action_id}", response_model=ActionReward, tags=["Actions"])
def get_action(action_id: str) -> ActionReward:
    return ActionReward(action_id=action_id, reward=karma_store.reward_of(action_id))


@app.put("/actions/{action_id}", response_model=ActionReward, tags=["Actions"])
def update_action(action_id: str, request: UpdateActionRequest, x_caller_id: str = Header(...)) -> ActionReward:
    try:
        return karma_store.update(x_caller_id, action_id, request.amount)
    except KarmaStoreError as e:
        raise _to_http_error(e)


@app.post("/rewards", response_model=RewardResponse, status_code=status.HTTP_201_CREATED, tags=["Karma"])
def create_reward(request: RewardRequest, x_caller_id: str = Header(...)) -> RewardResponse:
    return karma_store.reward(x_caller_id, request.beneficiary, request.action_id, request.context)


@app.post("/flush", response_model=FlushResult, tags=["Karma"])
def flush(x_caller_id: str = Header(...)) -> FlushResult:
    try:
        return karma_store.flush(x_caller_id)
    except KarmaStoreError as e:
        raise _to_http_error(e)


@app.get("/users/{user_id}/karma", response_model=KarmaBalance, tags=["Users"])
def get_user_karma(user_id: str) -> KarmaBalance:
    return karma_store.get_balance(user_id)


@app.get("/totals", response_model=LedgerTotals, tags=["Karma"])
def get_totals() -> LedgerTotals:
    return karma_store.get_totals()


if __name__ == "__main__":
    import uvicorn
    logging.basicConfig(level=os.getenv("KARMA_LOG_LEVEL", "INFO").upper())
    uvicorn.run(app, host="0.0.0.0", port=8000)
