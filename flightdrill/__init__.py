from . import orchestrator
from .commands import Command, CommandKind, ReduceResult, describe_command
from .config import DrillConfig, FlightSetup, create_state_from_setup
from .geometry import CadetPosition, compute_cadet_positions
from .parser import ParseError, parse_command
from .reducer import reduce
from .session import DrillSession
from .state import SimulatorState, create_initial_state, normalize_heading

__all__ = [
    "CadetPosition",
    "Command",
    "CommandKind",
    "DrillConfig",
    "DrillSession",
    "FlightSetup",
    "ParseError",
    "ReduceResult",
    "SimulatorState",
    "compute_cadet_positions",
    "create_initial_state",
    "create_state_from_setup",
    "describe_command",
    "normalize_heading",
    "orchestrator",
    "parse_command",
    "reduce",
]
