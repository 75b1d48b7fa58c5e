from dataclasses import dataclass
from typing import Any, Optional

from .assets import InMemoryAsset
from .config import LedgerConfig
from .environment import SimulatedChain
from .events import InMemoryEventLog
from .service import RewardLedger


@dataclass
class Deployment:
    chain: SimulatedChain
    ledger: RewardLedger
    staked_asset: InMemoryAsset
    reward_asset: InMemoryAsset
    events: InMemoryEventLog
    config: LedgerConfig

    def call(self, caller: str, method: str, *args, **kwargs) -> Any:
        return self.chain.transact(caller, self.ledger, method, *args, **kwargs)

    def fund_account(self, account: str, staked: int = 0, reward: int = 0) -> None:
        """Mint assets to account and approve the ledger to pull them."""
        for asset, amount in ((self.staked_asset, staked), (self.reward_asset, reward)):
            if amount:
                asset.mint(account, amount)
                asset.approve(account, self.ledger.address,
                              asset.allowance(account, self.ledger.address) + amount)

    def asset(self, asset_id: str) -> Optional[InMemoryAsset]:
        return self.ledger.transfers.assets.get(asset_id)

    def add_asset(self, asset: InMemoryAsset) -> None:
        self.ledger.transfers.assets[asset.asset_id] = asset
        self.chain.register(asset)


def deploy(
    config: Optional[LedgerConfig] = None,
    staked_asset: Optional[InMemoryAsset] = None,
    reward_asset: Optional[InMemoryAsset] = None,
    start_time: int = 0,
) -> Deployment:
    config = config or LedgerConfig()
    chain = SimulatedChain(start_time=start_time)
    staked_asset = staked_asset or InMemoryAsset(config.staked_asset_id, name="Staked", symbol=config.staked_asset_id)
    reward_asset = reward_asset or InMemoryAsset(config.reward_asset_id, name="Reward", symbol=config.reward_asset_id)
    events = InMemoryEventLog()

    ledger = RewardLedger(
        env=chain,
        assets={staked_asset.asset_id: staked_asset, reward_asset.asset_id: reward_asset},
        staked_asset_id=staked_asset.asset_id,
        reward_asset_id=reward_asset.asset_id,
        admin=config.admin,
        address=config.ledger_address,
        reward_duration=config.reward_duration,
        sink=events,
        transfer_accounting=config.transfer_accounting,
    )
    chain.register(ledger, staked_asset, reward_asset, events)

    return Deployment(
        chain=chain,
        ledger=ledger,
        staked_asset=staked_asset,
        reward_asset=reward_asset,
        events=events,
        config=config,
    )
