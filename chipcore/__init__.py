"""CHIP-8 emulator core package."""

from chipcore.state import EmulatorState, StackState, create_state
from chipcore.emulator import (
    CycleRecord, execute, fetch, cycle, tick_timers, run_cycles, run_frame,
    load_rom, load_rom_file, create_machine, set_key, set_keypad,
    instruction_status, raise_for_status,
)
from chipcore.decode import DecodedInstruction, decode
from chipcore.errors import (
    ExecutionStatus, Chip8Error, RomTooLarge, ExecutionError,
    InvalidOpcode, StackOverflow, StackUnderflow,
)
from chipcore.quirks import Quirks, create_quirks
from chipcore.rng import RandomSource, prng_random_byte, constant_random_source
from chipcore.trace import format_trace, format_display, trace_cycles
from chipcore.logging import ConsoleLogger, EmulatorLogger
from chipcore.session import Chip8Session, SessionConfig
from chipcore.constants import *

__all__ = [
    "EmulatorState",
    "StackState",
    "create_state",
    "CycleRecord",
    "execute",
    "fetch",
    "cycle",
    "tick_timers",
    "run_cycles",
    "run_frame",
    "load_rom",
    "load_rom_file",
    "create_machine",
    "set_key",
    "set_keypad",
    "instruction_status",
    "raise_for_status",
    "DecodedInstruction",
    "decode",
    "ExecutionStatus",
    "Chip8Error",
    "RomTooLarge",
    "ExecutionError",
    "InvalidOpcode",
    "StackOverflow",
    "StackUnderflow",
    "Quirks",
    "create_quirks",
    "RandomSource",
    "prng_random_byte",
    "constant_random_source",
    "format_trace",
    "format_display",
    "trace_cycles",
    "ConsoleLogger",
    "EmulatorLogger",
    "Chip8Session",
    "SessionConfig",
    "PROGRAM_START",
    "FONT_START",
    "MEMORY_SIZE",
    "MAX_ROM_SIZE",
    "SCREEN_WIDTH",
    "SCREEN_HEIGHT",
    "STACK_SIZE",
]
