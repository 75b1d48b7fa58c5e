from mangum import Mangum
import sys
import os

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from reward_ledger.api import app
from reward_ledger.logging_config import configure_logging

configure_logging(app.state.deployment.config.log_level)
app.root_path = "/api"

handler = Mangum(app)
