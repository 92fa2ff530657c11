from __future__ import annotations

from ntpramp.loadgen.burst import BurstResult, run_burst
from ntpramp.loadgen.counter import Counter
from ntpramp.loadgen.pacer import remaining_budget, wait_remaining
from ntpramp.loadgen.probe import ErrorType, NtpProbe, Probe, ProbeOutcome
from ntpramp.loadgen.runner import RampController, RunResult, RunState, run_ramp

__all__ = [
    "BurstResult",
    "Counter",
    "ErrorType",
    "NtpProbe",
    "Probe",
    "ProbeOutcome",
    "RampController",
    "RunResult",
    "RunState",
    "remaining_budget",
    "run_burst",
    "run_ramp",
    "wait_remaining",
]
