"""
Safe transfer protocol between the ledger's custody and participants.

pull() moves assets into custody and reports how much actually arrived,
which can be less than requested for assets that charge a fee on
transfer. push() moves assets out of custody. Both go through the
ReentrancyGate so that an asset calling back into the ledger is only
admitted when the external call was made with re-entry allowed.
"""

import logging
from contextlib import contextmanager
from typing import Iterator, Mapping

from .assets import FungibleAsset
from .environment import ExecutionEnvironment
from .errors import (
    InsufficientAllowanceError,
    InsufficientFundsError,
    ReentrancyError,
    TransferFailedError,
    UnknownAssetError,
)
from .fixed_point import checked_sub

log = logging.getLogger("reward_ledger.transfers")


class ReentrancyGate:
    def __init__(self):
        self._calls: list[bool] = []

    @property
    def in_external_call(self) -> bool:
        return bool(self._calls)

    def check(self, operation: str) -> None:
        if self._calls and not self._calls[-1]:
            raise ReentrancyError(f"{operation} re-entered during a non-reentrant transfer")

    @contextmanager
    def external_call(self, allow_reentry: bool) -> Iterator[None]:
        self._calls.append(allow_reentry)
        try:
            yield
        finally:
            self._calls.pop()


class SafeTransfer:
    def __init__(
        self,
        env: ExecutionEnvironment,
        assets: Mapping[str, FungibleAsset],
        gate: ReentrancyGate,
    ):
        self.env = env
        self.assets = assets
        self.gate = gate

    def asset(self, asset_id: str) -> FungibleAsset:
        asset = self.assets.get(asset_id)
        if asset is None:
            raise UnknownAssetError(f"Asset {asset_id} is not registered")
        return asset

    def pull(self, owner: str, asset_id: str, amount: int, allow_reentry: bool = True) -> int:
        """Move amount from owner into custody and return the amount received."""
        asset = self.asset(asset_id)
        custody = self.env.self_address()

        if asset.balance_of(owner) < amount:
            raise InsufficientFundsError(f"{owner} holds less than {amount} {asset_id}")
        if asset.allowance(owner, custody) < amount:
            raise InsufficientAllowanceError(
                f"{owner} allowed {custody} less than {amount} {asset_id}"
            )

        before = asset.balance_of(custody)
        with self.gate.external_call(allow_reentry):
            try:
                ok = asset.transfer_from(custody, owner, custody, amount, allow_reentry)
            except Exception as exc:
                raise TransferFailedError(f"transfer_from of {amount} {asset_id} reverted") from exc
        after = asset.balance_of(custody)

        if not ok:
            raise TransferFailedError(f"transfer_from of {amount} {asset_id} from {owner} failed")

        received = checked_sub(after, before)
        if received != amount:
            log.info("pulled %s %s from %s, received %s", amount, asset_id, owner, received)
        return received

    def push(self, to: str, asset_id: str, amount: int) -> None:
        asset = self.asset(asset_id)
        custody = self.env.self_address()

        with self.gate.external_call(allow_reentry=False):
            try:
                ok = asset.transfer(custody, to, amount)
            except Exception as exc:
                raise TransferFailedError(f"transfer of {amount} {asset_id} reverted") from exc

        if not ok:
            raise TransferFailedError(f"transfer of {amount} {asset_id} to {to} failed")
