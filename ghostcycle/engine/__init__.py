from ghostcycle.engine.cycle import CycleOutcome, WalletCycleRunner
from ghostcycle.engine.decision import Decision, decide
from ghostcycle.engine.executor import ActionExecutor, InstructionSet
from ghostcycle.engine.fetcher import FetchedState, StateFetcher
from ghostcycle.engine.fleet import FleetLoop
from ghostcycle.engine.settings import CycleSettings
from ghostcycle.engine.snapshot import SystemSnapshot, WalletSnapshot

__all__ = [
    "ActionExecutor",
    "CycleOutcome",
    "CycleSettings",
    "Decision",
    "FetchedState",
    "FleetLoop",
    "InstructionSet",
    "StateFetcher",
    "SystemSnapshot",
    "WalletCycleRunner",
    "WalletSnapshot",
    "decide",
]
