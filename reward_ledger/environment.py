"""
Hosting environment for the ledger.

ExecutionEnvironment is what the ledger consumes: the current time, the
account making the current call and the ledger's own address.
SimulatedChain is an in-process host that provides those values from a
manual clock and a call stack, and gives every call all-or-nothing
semantics by snapshotting registered participants and restoring them when
the call raises.
"""

import logging
from typing import Any, Protocol

from .logging_config import log_event

log = logging.getLogger("reward_ledger.chain")


class ExecutionEnvironment(Protocol):
    def now(self) -> int: ...

    def caller(self) -> str: ...

    def self_address(self) -> str: ...


class Participant(Protocol):
    def snapshot(self) -> Any: ...

    def restore(self, snapshot: Any) -> None: ...


class Contract(Protocol):
    address: str


class SimulatedChain:
    def __init__(self, start_time: int = 0):
        self.timestamp = start_time
        self._frames: list[tuple[str, str]] = []
        self._participants: list[Participant] = []

    def now(self) -> int:
        return self.timestamp

    def caller(self) -> str:
        if not self._frames:
            raise RuntimeError("No call in progress")
        return self._frames[-1][0]

    def self_address(self) -> str:
        if not self._frames:
            raise RuntimeError("No call in progress")
        return self._frames[-1][1]

    @property
    def depth(self) -> int:
        return len(self._frames)

    def advance(self, seconds: int) -> int:
        if seconds < 0:
            raise ValueError("Time cannot move backwards")
        self.timestamp += seconds
        return self.timestamp

    def set_time(self, timestamp: int) -> int:
        if timestamp < self.timestamp:
            raise ValueError(f"Time cannot move backwards from {self.timestamp} to {timestamp}")
        self.timestamp = timestamp
        return self.timestamp

    def register(self, *participants: Participant) -> None:
        for participant in participants:
            if participant not in self._participants:
                self._participants.append(participant)

    def transact(self, caller: str, contract: Contract, method: str, *args, **kwargs) -> Any:
        """Run contract.method(*args) as caller, reverting every participant on failure."""
        snapshots = [(p, p.snapshot()) for p in self._participants]
        self._frames.append((caller, contract.address))
        try:
            return getattr(contract, method)(*args, **kwargs)
        except Exception as exc:
            for participant, snapshot in snapshots:
                participant.restore(snapshot)
            log_event(
                log, "call_reverted", level=logging.WARNING,
                caller=caller, contract=contract.address, method=method,
                error=type(exc).__name__, depth=len(self._frames),
            )
            raise
        finally:
            self._frames.pop()
