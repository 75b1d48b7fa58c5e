"""
Fungible asset collaborators.

The ledger only depends on the FungibleAsset capability interface. The
in-memory implementations back the simulated chain, the HTTP demo and the
tests; FeeOnTransferAsset models assets that deliver less than requested.
"""

import logging
from dataclasses import dataclass
from typing import Callable, Optional, Protocol

from .errors import AmountMustBePositiveError, InsufficientFundsError

log = logging.getLogger("reward_ledger.assets")


class FungibleAsset(Protocol):
    asset_id: str

    def balance_of(self, account: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def transfer(self, sender: str, to: str, amount: int) -> bool: ...

    def transfer_from(
        self, spender: str, owner: str, to: str, amount: int, allow_reentry: bool = False
    ) -> bool: ...


@dataclass(frozen=True)
class TransferRecord:
    asset_id: str
    sender: str
    to: str
    requested: int
    delivered: int
    allow_reentry: bool


class InMemoryAsset:
    def __init__(
        self,
        asset_id: str,
        name: Optional[str] = None,
        symbol: Optional[str] = None,
        decimals: int = 18,
    ):
        self.asset_id = asset_id
        self.name = name
        self.symbol = symbol
        self.decimals = decimals
        self.total_supply = 0
        self.balances: dict[str, int] = {}
        self.allowances: dict[tuple[str, str], int] = {}
        self.on_transfer: Optional[Callable[[TransferRecord], None]] = None

    def balance_of(self, account: str) -> int:
        return self.balances.get(account, 0)

    def allowance(self, owner: str, spender: str) -> int:
        return self.allowances.get((owner, spender), 0)

    def approve(self, owner: str, spender: str, amount: int) -> None:
        self.allowances[(owner, spender)] = amount

    def mint(self, to: str, amount: int) -> None:
        if amount <= 0:
            raise AmountMustBePositiveError("Mint amount must be positive")
        self.balances[to] = self.balance_of(to) + amount
        self.total_supply += amount

    def burn(self, account: str, amount: int) -> None:
        if amount > self.balance_of(account):
            raise InsufficientFundsError(f"{account} holds less than {amount} {self.asset_id}")
        self.balances[account] = self.balance_of(account) - amount
        self.total_supply -= amount

    def transfer(self, sender: str, to: str, amount: int) -> bool:
        if amount > self.balance_of(sender):
            return False
        self._move(sender, to, amount, allow_reentry=False)
        return True

    def transfer_from(
        self, spender: str, owner: str, to: str, amount: int, allow_reentry: bool = False
    ) -> bool:
        allowed = self.allowance(owner, spender)
        if amount > self.balance_of(owner) or amount > allowed:
            return False
        self.allowances[(owner, spender)] = allowed - amount
        self._move(owner, to, amount, allow_reentry=allow_reentry)
        return True

    def fee_for(self, amount: int) -> int:
        return 0

    def _move(self, sender: str, to: str, amount: int, allow_reentry: bool) -> None:
        fee = self.fee_for(amount)
        delivered = amount - fee
        self.balances[sender] = self.balance_of(sender) - amount
        self.balances[to] = self.balance_of(to) + delivered
        if fee:
            self._collect_fee(fee)

        if self.on_transfer is not None:
            self.on_transfer(TransferRecord(
                asset_id=self.asset_id, sender=sender, to=to,
                requested=amount, delivered=delivered, allow_reentry=allow_reentry,
            ))

    def _collect_fee(self, fee: int) -> None:
        self.total_supply -= fee

    def snapshot(self) -> tuple:
        return self.total_supply, dict(self.balances), dict(self.allowances)

    def restore(self, snapshot: tuple) -> None:
        self.total_supply, balances, allowances = snapshot
        self.balances = dict(balances)
        self.allowances = dict(allowances)


class FeeOnTransferAsset(InMemoryAsset):
    """Withholds fee_bps basis points of every move.

    The fee is credited to fee_collector when one is set, otherwise burned.
    """

    def __init__(self, asset_id: str, fee_bps: int, fee_collector: Optional[str] = None, **kwargs):
        super().__init__(asset_id, **kwargs)
        if not 0 <= fee_bps <= 10_000:
            raise ValueError(f"fee_bps must be within 0..10000, got {fee_bps}")
        self.fee_bps = fee_bps
        self.fee_collector = fee_collector

    def fee_for(self, amount: int) -> int:
        return amount * self.fee_bps // 10_000

    def _collect_fee(self, fee: int) -> None:
        if self.fee_collector is None:
            super()._collect_fee(fee)
            return
        self.balances[self.fee_collector] = self.balance_of(self.fee_collector) + fee
        log.debug("fee %s %s collected by %s", fee, self.asset_id, self.fee_collector)
