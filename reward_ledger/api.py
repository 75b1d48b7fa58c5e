from typing import Optional

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware

from .config import LedgerConfig
from .deployment import Deployment, deploy
from .errors import (
    DurationNotConfiguredError,
    NotAdminError,
    RewardLedgerError,
    ScheduleActiveError,
    UnknownAssetError,
)
from .logging_config import configure_logging
from .models import (
    AccountView, AdvanceRequest, AmountRequest, ApproveRequest, CallResponse,
    CallerRequest, DurationRequest, LedgerSnapshot, MintRequest,
    SweepRequest,
)


def _http_error(exc: RewardLedgerError) -> HTTPException:
    if isinstance(exc, NotAdminError):
        code = status.HTTP_403_FORBIDDEN
    elif isinstance(exc, (ScheduleActiveError, DurationNotConfiguredError)):
        code = status.HTTP_409_CONFLICT
    elif isinstance(exc, UnknownAssetError):
        code = status.HTTP_404_NOT_FOUND
    else:
        code = status.HTTP_400_BAD_REQUEST
    return HTTPException(status_code=code, detail=f"{type(exc).__name__}: {exc}")


def ledger_snapshot(deployment: Deployment) -> LedgerSnapshot:
    ledger = deployment.ledger
    state = ledger.state
    return LedgerSnapshot(
        address=state.address,
        admin=state.admin,
        staked_asset_id=state.staked_asset_id,
        reward_asset_id=state.reward_asset_id,
        now=deployment.chain.now(),
        total_staked=ledger.total_staked(),
        last_time_reward_applicable=ledger.last_time_reward_applicable(),
        reward_per_unit=ledger.reward_per_unit(),
        reward_for_duration=ledger.get_reward_for_duration(),
        window=state.window.model_copy(),
        accumulator=state.accumulator.model_copy(),
    )


def create_app(deployment: Optional[Deployment] = None, root_path: str = "") -> FastAPI:
    if deployment is None:
        deployment = deploy(LedgerConfig.from_env())

    app = FastAPI(
        title="Reward Ledger API",
        description="Time-weighted staking reward ledger on a simulated chain",
        version="1.0.0",
        root_path=root_path,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )
    app.state.deployment = deployment

    def run(caller: str, method: str, *args) -> Optional[int]:
        try:
            return deployment.call(caller, method, *args)
        except RewardLedgerError as e:
            raise _http_error(e)

    def respond(message: str, amount: Optional[int] = None) -> CallResponse:
        return CallResponse(message=message, amount=amount, ledger=ledger_snapshot(deployment))

    def asset_or_404(asset_id: str):
        asset = deployment.asset(asset_id)
        if asset is None:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Asset {asset_id} not found")
        return asset

    @app.get("/health", tags=["System"])
    def health_check():
        return {"status": "healthy", "service": "reward-ledger"}

    @app.get("/ledger", response_model=LedgerSnapshot, tags=["Ledger"])
    def get_ledger() -> LedgerSnapshot:
        return ledger_snapshot(deployment)

    @app.get("/accounts/{account_id}", response_model=AccountView, tags=["Ledger"])
    def get_account(account_id: str) -> AccountView:
        ledger = deployment.ledger
        account = ledger.account_state(account_id)
        return AccountView(
            account_id=account_id,
            staked_balance=account.staked_balance,
            earned=ledger.earned(account_id),
            reward_per_unit_paid=account.reward_per_unit_paid,
            staked_asset_balance=deployment.staked_asset.balance_of(account_id),
            reward_asset_balance=deployment.reward_asset.balance_of(account_id),
        )

    @app.get("/events", tags=["Ledger"])
    def get_events(limit: int = 50, offset: int = 0) -> list[dict]:
        return [e.model_dump(mode="json") for e in deployment.events.events[offset:offset + limit]]

    @app.post("/stake", response_model=CallResponse, tags=["Participants"])
    def stake(request: AmountRequest) -> CallResponse:
        run(request.caller, "stake", request.amount)
        return respond("Staked", request.amount)

    @app.post("/withdraw", response_model=CallResponse, tags=["Participants"])
    def withdraw(request: AmountRequest) -> CallResponse:
        run(request.caller, "withdraw", request.amount)
        return respond("Withdrawn", request.amount)

    @app.post("/claim", response_model=CallResponse, tags=["Participants"])
    def claim(request: CallerRequest) -> CallResponse:
        paid = run(request.caller, "claim_reward")
        return respond("Reward claimed" if paid else "No reward accrued", paid)

    @app.post("/exit", response_model=CallResponse, tags=["Participants"])
    def exit_position(request: CallerRequest) -> CallResponse:
        paid = run(request.caller, "exit")
        return respond("Exited", paid)

    @app.post("/admin/notify", response_model=CallResponse, tags=["Admin"])
    def notify_reward(request: AmountRequest) -> CallResponse:
        run(request.caller, "notify_reward_amount", request.amount)
        return respond("Reward notified", request.amount)

    @app.post("/admin/duration", response_model=CallResponse, tags=["Admin"])
    def set_duration(request: DurationRequest) -> CallResponse:
        run(request.caller, "set_reward_duration", request.duration)
        return respond("Duration updated")

    @app.post("/admin/sweep", response_model=CallResponse, tags=["Admin"])
    def sweep(request: SweepRequest) -> CallResponse:
        run(request.caller, "sweep_foreign_asset", request.asset_id, request.amount)
        return respond("Asset swept", request.amount)

    @app.post("/chain/advance", response_model=LedgerSnapshot, tags=["Chain"])
    def advance(request: AdvanceRequest) -> LedgerSnapshot:
        deployment.chain.advance(request.seconds)
        return ledger_snapshot(deployment)

    @app.post("/assets/{asset_id}/mint", tags=["Assets"])
    def mint(asset_id: str, request: MintRequest):
        asset = asset_or_404(asset_id)
        try:
            asset.mint(request.to, request.amount)
        except RewardLedgerError as e:
            raise _http_error(e)
        return {"asset_id": asset_id, "account": request.to, "balance": asset.balance_of(request.to)}

    @app.post("/assets/{asset_id}/approve", tags=["Assets"])
    def approve(asset_id: str, request: ApproveRequest):
        asset = asset_or_404(asset_id)
        spender = request.spender or deployment.ledger.address
        asset.approve(request.owner, spender, request.amount)
        return {"asset_id": asset_id, "owner": request.owner, "spender": spender,
                "allowance": asset.allowance(request.owner, spender)}

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn
    configure_logging(app.state.deployment.config.log_level)
    uvicorn.run(app, host="0.0.0.0", port=8000)
