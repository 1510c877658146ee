"""Diagnostic traces for golden-trace regression testing."""

import jax
import numpy as np

from chipcore.emulator import cycle
from chipcore.state import EmulatorState

_jit_cycle = jax.jit(cycle)


def format_trace(state: EmulatorState) -> str:
    """One tab separated line: opcode, I, V0-VF and the program counter."""
    registers = "\t".join(f"V{i:X}:{int(v):02X}" for i, v in enumerate(np.asarray(state.V)))
    return f"{int(state.opcode):04X}\tI:{int(state.I):03X}\t{registers}\tPC:{int(state.pc):03X}"


def format_display(display, on: str = "#", off: str = ".") -> str:
    """Render a (width, height) framebuffer as rows of text."""
    pixels = np.asarray(display, dtype=np.bool_).T
    return "\n".join("".join(on if lit else off for lit in row) for row in pixels)


def trace_cycles(state: EmulatorState, n: int, logger=None) -> tuple[EmulatorState, list[str]]:
    """Run ``n`` cycles one at a time, collecting a trace line after each.

    Args:
        state: Machine to run
        n: Number of cycles
        logger: Optional EmulatorLogger that also receives each line and status

    Returns:
        Final state and the list of trace lines
    """
    lines = []
    for _ in range(n):
        state = _jit_cycle(state)
        lines.append(format_trace(state))
        if logger is not None:
            logger.log_cycle(state)
            logger.log_status(state)
    return state, lines
