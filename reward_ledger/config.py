import os
from typing import Optional

from pydantic import BaseModel, Field

from .models import TransferAccounting

DEFAULT_LEDGER_ADDRESS = "reward-ledger"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    if value is None:
        return default
    try:
        parsed = int(value.strip())
    except ValueError:
        return default
    return parsed if parsed >= 0 else default


def _env_str(name: str, default: str) -> str:
    value = (os.getenv(name) or "").strip()
    return value or default


class LedgerConfig(BaseModel):
    reward_duration: int = Field(default=0, ge=0)
    transfer_accounting: TransferAccounting = TransferAccounting.REQUESTED
    admin: str = "admin"
    ledger_address: str = DEFAULT_LEDGER_ADDRESS
    staked_asset_id: str = "STAKE"
    reward_asset_id: str = "REWARD"
    log_level: str = "INFO"

    @classmethod
    def from_env(cls, defaults: Optional["LedgerConfig"] = None) -> "LedgerConfig":
        base = defaults or cls()
        accounting = _env_str("REWARD_LEDGER_TRANSFER_ACCOUNTING", base.transfer_accounting.value).lower()
        try:
            transfer_accounting = TransferAccounting(accounting)
        except ValueError:
            transfer_accounting = base.transfer_accounting

        return cls(
            reward_duration=_env_int("REWARD_LEDGER_DURATION", base.reward_duration),
            transfer_accounting=transfer_accounting,
            admin=_env_str("REWARD_LEDGER_ADMIN", base.admin),
            ledger_address=_env_str("REWARD_LEDGER_ADDRESS", base.ledger_address),
            staked_asset_id=_env_str("REWARD_LEDGER_STAKED_ASSET", base.staked_asset_id),
            reward_asset_id=_env_str("REWARD_LEDGER_REWARD_ASSET", base.reward_asset_id),
            log_level=_env_str("REWARD_LEDGER_LOG_LEVEL", base.log_level).upper(),
        )
