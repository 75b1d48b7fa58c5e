"""
Time-weighted Reward Ledger

This package provides:
- A reward-per-unit accumulator with per-account settlement
- Stake, withdraw, claim and exit flows for participants
- Administrator-funded distribution windows with unspent-emission rollover
- A safe transfer protocol that tolerates fee-on-transfer assets
- A simulated chain host with all-or-nothing calls and re-entrancy control
"""

from .assets import FeeOnTransferAsset, FungibleAsset, InMemoryAsset
from .config import LedgerConfig
from .deployment import Deployment, deploy
from .environment import ExecutionEnvironment, SimulatedChain
from .events import EventSink, InMemoryEventLog
from .fixed_point import MAX_AMOUNT, SCALE
from .models import (
    AccountState,
    DistributionWindow,
    EventType,
    GlobalAccumulator,
    LedgerState,
    TransferAccounting,
)
from .service import GLOBAL_ACCOUNT, RewardLedger

__all__ = [
    "AccountState",
    "Deployment",
    "DistributionWindow",
    "EventSink",
    "EventType",
    "ExecutionEnvironment",
    "FeeOnTransferAsset",
    "FungibleAsset",
    "GLOBAL_ACCOUNT",
    "GlobalAccumulator",
    "InMemoryAsset",
    "InMemoryEventLog",
    "LedgerConfig",
    "LedgerState",
    "MAX_AMOUNT",
    "RewardLedger",
    "SCALE",
    "SimulatedChain",
    "TransferAccounting",
    "deploy",
]
