import logging
from typing import Callable, Mapping, Optional, TypeVar

from .assets import FungibleAsset
from .environment import ExecutionEnvironment
from .errors import (
    AmountMustBePositiveError,
    DurationNotConfiguredError,
    InsufficientFundsError,
    NotAdminError,
    ProtectedAssetError,
    ScheduleActiveError,
)
from .events import EventSink, InMemoryEventLog
from .fixed_point import SCALE, checked_add, checked_mul, checked_sub, mul_div
from .logging_config import log_event
from .models import (
    AccountState,
    DurationUpdate,
    LedgerState,
    RewardNotified,
    RewardPaid,
    Staked,
    TransferAccounting,
    Withdraw,
)
from .transfers import ReentrancyGate, SafeTransfer

log = logging.getLogger("reward_ledger.service")

GLOBAL_ACCOUNT = "0x" + "00" * 32

T = TypeVar("T")


class RewardLedger:
    """Distributes a funded reward amount to stakers pro rata over time.

    Every mutating operation settles the accumulator first, applies its
    own bookkeeping, and only then talks to an asset. Rolling back a
    failed call is the host's job (see SimulatedChain.transact).
    """

    def __init__(
        self,
        env: ExecutionEnvironment,
        assets: Mapping[str, FungibleAsset],
        staked_asset_id: str,
        reward_asset_id: str,
        admin: str,
        address: str,
        reward_duration: int = 0,
        sink: Optional[EventSink] = None,
        transfer_accounting: TransferAccounting = TransferAccounting.REQUESTED,
    ):
        self.env = env
        self.state = LedgerState(
            address=address,
            admin=admin,
            staked_asset_id=staked_asset_id,
            reward_asset_id=reward_asset_id,
        )
        self.state.window.duration = reward_duration
        self.sink = sink if sink is not None else InMemoryEventLog()
        self.transfer_accounting = transfer_accounting
        self.gate = ReentrancyGate()
        self.transfers = SafeTransfer(env, assets, self.gate)

    @property
    def address(self) -> str:
        return self.state.address

    # Views

    def total_staked(self) -> int:
        return self.state.accumulator.total_staked

    def balance_of(self, account: str) -> int:
        return self.account_state(account).staked_balance

    def account_state(self, account: str) -> AccountState:
        existing = self.state.accounts.get(account)
        return existing.model_copy() if existing is not None else AccountState()

    def global_account(self) -> str:
        return GLOBAL_ACCOUNT

    def last_time_reward_applicable(self) -> int:
        return min(self.env.now(), self.state.window.end_time)

    effective_time = last_time_reward_applicable

    def reward_per_unit(self) -> int:
        acc = self.state.accumulator
        if acc.total_staked == 0:
            return acc.reward_per_unit_stored

        elapsed = checked_sub(self.effective_time(), acc.last_update_time)
        emitted = checked_mul(elapsed, self.state.window.reward_rate)
        return checked_add(acc.reward_per_unit_stored, mul_div(emitted, SCALE, acc.total_staked))

    def earned(self, account: str) -> int:
        acct = self.account_state(account)
        delta = checked_sub(self.reward_per_unit(), acct.reward_per_unit_paid)
        return checked_add(mul_div(acct.staked_balance, delta, SCALE), acct.accrued_reward)

    def get_reward_for_duration(self) -> int:
        window = self.state.window
        return checked_mul(window.reward_rate, window.duration)

    # Settlement

    def settle(self, account: str) -> None:
        """Bring the accumulator up to the effective time, then snapshot account."""
        reward_per_unit = self.reward_per_unit()
        acc = self.state.accumulator
        acc.reward_per_unit_stored = reward_per_unit
        acc.last_update_time = self.effective_time()

        if account == GLOBAL_ACCOUNT:
            return

        earned = self.earned(account)
        acct = self._account(account)
        acct.accrued_reward = earned
        acct.reward_per_unit_paid = reward_per_unit
        log.debug("settled %s at %s: accrued=%s", account, acc.last_update_time, earned)

    # Participant operations

    def stake(self, amount: int) -> None:
        self.gate.check("stake")
        caller = self.env.caller()
        if amount <= 0:
            raise AmountMustBePositiveError("Stake amount must be greater than zero")

        self.settle(caller)
        acc = self.state.accumulator
        acct = self._account(caller)
        new_total = checked_add(acc.total_staked, amount)
        new_balance = checked_add(acct.staked_balance, amount)

        def credit() -> None:
            acc.total_staked = new_total
            acct.staked_balance = new_balance

        received = self._apply_then_transfer(
            credit,
            lambda: self.transfers.pull(caller, self.state.staked_asset_id, amount),
        )
        if self.transfer_accounting == TransferAccounting.RECEIVED:
            # Stake credited by calls nested in the pull landed in the same custody delta.
            nested = self.state.accumulator.total_staked - new_total
            received = min(checked_sub(received, nested), amount)
            if received != amount:
                self._reconcile_stake(caller, amount, received)

        self.sink.emit(Staked(caller=caller, amount=amount))
        log_event(log, "staked", caller=caller, amount=amount, received=received)

    def withdraw(self, amount: int) -> None:
        self.gate.check("withdraw")
        caller = self.env.caller()
        if amount <= 0:
            raise AmountMustBePositiveError("Withdraw amount must be greater than zero")

        self.settle(caller)
        acc = self.state.accumulator
        acct = self._account(caller)
        if amount > acct.staked_balance:
            raise InsufficientFundsError(
                f"{caller} has {acct.staked_balance} staked, cannot withdraw {amount}"
            )
        new_total = checked_sub(acc.total_staked, amount)
        new_balance = acct.staked_balance - amount

        def debit() -> None:
            acc.total_staked = new_total
            acct.staked_balance = new_balance

        self._apply_then_transfer(
            debit,
            lambda: self.transfers.push(caller, self.state.staked_asset_id, amount),
        )
        self.sink.emit(Withdraw(caller=caller, amount=amount))
        log_event(log, "withdrawn", caller=caller, amount=amount)

    def claim_reward(self) -> int:
        self.gate.check("claim_reward")
        caller = self.env.caller()
        self.settle(caller)

        acct = self._account(caller)
        reward = acct.accrued_reward
        if reward == 0:
            return 0

        def clear() -> None:
            acct.accrued_reward = 0

        self._apply_then_transfer(
            clear,
            lambda: self.transfers.push(caller, self.state.reward_asset_id, reward),
        )
        self.sink.emit(RewardPaid(caller=caller, amount=reward))
        log_event(log, "reward_paid", caller=caller, amount=reward)
        return reward

    def exit(self) -> int:
        self.gate.check("exit")
        caller = self.env.caller()
        self.withdraw(self.balance_of(caller))
        return self.claim_reward()

    # Administrator operations

    def notify_reward_amount(self, amount: int) -> None:
        self.gate.check("notify_reward_amount")
        caller = self.env.caller()
        self._only_admin(caller)
        duration = self.state.window.duration
        if duration == 0:
            raise DurationNotConfiguredError("Reward duration must be set before funding")

        self.settle(GLOBAL_ACCOUNT)
        received = self.transfers.pull(caller, self.state.reward_asset_id, amount)
        funded = min(received, amount) if self.transfer_accounting == TransferAccounting.RECEIVED else amount

        now = self.env.now()
        window = self.state.window
        if now >= window.end_time:
            reward_rate = funded // duration
        else:
            leftover = checked_mul(window.end_time - now, window.reward_rate)
            reward_rate = checked_add(funded, leftover) // duration
        end_time = checked_add(now, duration)

        window.reward_rate = reward_rate
        window.end_time = end_time
        self.state.accumulator.last_update_time = now

        self.sink.emit(RewardNotified(amount=amount))
        log_event(
            log, "reward_notified",
            amount=amount, received=received, reward_rate=reward_rate, end_time=end_time,
        )

    def set_reward_duration(self, duration: int) -> None:
        self.gate.check("set_reward_duration")
        self._only_admin(self.env.caller())
        window = self.state.window
        if window.is_active(self.env.now()):
            raise ScheduleActiveError(f"Distribution window runs until {window.end_time}")

        window.duration = duration
        self.sink.emit(DurationUpdate(duration=duration))
        log_event(log, "duration_updated", duration=duration)

    def sweep_foreign_asset(self, asset_id: str, amount: int) -> None:
        self.gate.check("sweep_foreign_asset")
        caller = self.env.caller()
        self._only_admin(caller)
        if asset_id in (self.state.staked_asset_id, self.state.reward_asset_id):
            raise ProtectedAssetError(f"{asset_id} is managed by the ledger and cannot be swept")
        if amount <= 0:
            raise AmountMustBePositiveError("Sweep amount must be greater than zero")

        self.transfers.push(caller, asset_id, amount)
        log_event(log, "asset_swept", asset_id=asset_id, amount=amount, to=caller)

    # Host integration

    def snapshot(self) -> LedgerState:
        return self.state.model_copy(deep=True)

    def restore(self, snapshot: LedgerState) -> None:
        self.state = snapshot.model_copy(deep=True)

    # Internals

    def _only_admin(self, caller: str) -> None:
        if caller != self.state.admin:
            raise NotAdminError(f"{caller} is not the ledger administrator")

    def _account(self, account: str) -> AccountState:
        return self.state.accounts.setdefault(account, AccountState())

    def _apply_then_transfer(self, effects: Callable[[], None], interaction: Callable[[], T]) -> T:
        effects()
        return interaction()

    def _reconcile_stake(self, account: str, requested: int, received: int) -> None:
        # Re-read state: a re-entrant call may have replaced it during the pull.
        acc = self.state.accumulator
        acct = self._account(account)
        acct.staked_balance = checked_add(checked_sub(acct.staked_balance, requested), received)
        acc.total_staked = checked_add(checked_sub(acc.total_staked, requested), received)
        log.info("stake of %s reconciled from %s to %s", account, requested, received)
