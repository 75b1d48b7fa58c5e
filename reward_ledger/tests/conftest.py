import pytest

from reward_ledger.config import LedgerConfig
from reward_ledger.deployment import deploy

ADMIN = "admin"
ALICE = "alice"
BOB = "bob"
CAROL = "carol"


@pytest.fixture
def deployment():
    """Ledger with a 100 second reward duration and plain assets."""
    return deploy(LedgerConfig(admin=ADMIN, reward_duration=100))


@pytest.fixture
def funded(deployment):
    """Ledger whose administrator has notified 1000 reward units at t=0."""
    deployment.fund_account(ADMIN, reward=1000)
    deployment.call(ADMIN, "notify_reward_amount", 1000)
    return deployment
