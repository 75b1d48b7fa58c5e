from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field, ConfigDict


class EventType(str, Enum):
    STAKED = "Staked"
    WITHDRAW = "Withdraw"
    REWARD_PAID = "RewardPaid"
    REWARD_NOTIFIED = "RewardNotified"
    DURATION_UPDATE = "DurationUpdate"


class TransferAccounting(str, Enum):
    REQUESTED = "requested"
    RECEIVED = "received"


class DistributionWindow(BaseModel):
    end_time: int = 0
    reward_rate: int = 0
    duration: int = 0

    def is_funded(self) -> bool:
        return self.end_time > 0

    def is_active(self, now: int) -> bool:
        return self.is_funded() and now <= self.end_time


class GlobalAccumulator(BaseModel):
    reward_per_unit_stored: int = 0
    last_update_time: int = 0
    total_staked: int = 0


class AccountState(BaseModel):
    staked_balance: int = 0
    reward_per_unit_paid: int = 0
    accrued_reward: int = 0


class LedgerState(BaseModel):
    address: str
    admin: str
    staked_asset_id: str
    reward_asset_id: str
    window: DistributionWindow = Field(default_factory=DistributionWindow)
    accumulator: GlobalAccumulator = Field(default_factory=GlobalAccumulator)
    accounts: dict[str, AccountState] = Field(default_factory=dict)


class LedgerEvent(BaseModel):
    event_type: EventType

    model_config = ConfigDict(frozen=True)


class Staked(LedgerEvent):
    event_type: EventType = EventType.STAKED
    caller: str
    amount: int


class Withdraw(LedgerEvent):
    event_type: EventType = EventType.WITHDRAW
    caller: str
    amount: int


class RewardPaid(LedgerEvent):
    event_type: EventType = EventType.REWARD_PAID
    caller: str
    amount: int


class RewardNotified(LedgerEvent):
    event_type: EventType = EventType.REWARD_NOTIFIED
    amount: int


class DurationUpdate(LedgerEvent):
    event_type: EventType = EventType.DURATION_UPDATE
    duration: int


class AmountRequest(BaseModel):
    caller: str = Field(..., description="Account submitting the call")
    amount: int = Field(..., ge=0)

    model_config = ConfigDict(json_schema_extra={
        "example": {"caller": "alice", "amount": 100}
    })


class CallerRequest(BaseModel):
    caller: str


class DurationRequest(BaseModel):
    caller: str
    duration: int = Field(..., ge=0)


class SweepRequest(BaseModel):
    caller: str
    asset_id: str
    amount: int = Field(..., ge=0)


class AdvanceRequest(BaseModel):
    seconds: int = Field(..., ge=0)


class MintRequest(BaseModel):
    to: str
    amount: int = Field(..., ge=0)


class ApproveRequest(BaseModel):
    owner: str
    spender: Optional[str] = Field(default=None, description="Defaults to the ledger address")
    amount: int = Field(..., ge=0)


class LedgerSnapshot(BaseModel):
    address: str
    admin: str
    staked_asset_id: str
    reward_asset_id: str
    now: int
    total_staked: int
    last_time_reward_applicable: int
    reward_per_unit: int
    reward_for_duration: int
    window: DistributionWindow
    accumulator: GlobalAccumulator


class AccountView(BaseModel):
    account_id: str
    staked_balance: int
    earned: int
    reward_per_unit_paid: int
    staked_asset_balance: int
    reward_asset_balance: int


class CallResponse(BaseModel):
    message: str
    amount: Optional[int] = None
    ledger: LedgerSnapshot
