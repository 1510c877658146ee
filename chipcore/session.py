"""Host-side session driving the emulator core frame by frame."""

from typing import Mapping, Optional

import jax
import numpy as np
from flax.struct import dataclass
from tqdm import tqdm

from chipcore.emulator import (
    CycleRecord, create_machine, cycle, instruction_address, run_frame, set_key, set_keypad, tick_timers,
)
from chipcore.errors import ExecutionStatus, error_for_status
from chipcore.logging import EmulatorLogger
from chipcore.quirks import create_quirks
from chipcore.rng import RandomSource
from chipcore.state import EmulatorState

INVALID_OPCODE_POLICIES = ("halt", "log", "ignore")

_jit_cycle = jax.jit(cycle)


@dataclass(frozen=True)
class SessionConfig:
    """Host settings for a CHIP-8 session.

    Attributes:
        instruction_frequency: CPU cycles per second (typically 700)
        timer_frequency: Timer ticks per second (60 on every known interpreter)
        quirks: Quirk preset name, see ``create_quirks``
        seed: Random seed; None seeds from the wall clock on every reset
        on_invalid_opcode: "halt" raises, "log" reports and keeps going, "ignore" keeps going
        trace: Log a diagnostic trace line per cycle in ``step``
        log_level: Console log level
    """
    instruction_frequency: int = 700
    timer_frequency: int = 60
    quirks: str = "default"
    seed: Optional[int] = None
    on_invalid_opcode: str = "log"
    trace: bool = False
    log_level: str = "INFO"

    @property
    def cycles_per_frame(self) -> int:
        """Number of CPU cycles between two timer ticks."""
        return max(1, self.instruction_frequency // self.timer_frequency)


class Chip8Session:
    """Host-side driver around the functional emulator core.

    Owns the current state, feeds it keypad levels, runs frames at the
    configured instruction/timer ratio and applies the invalid opcode policy.
    Stack faults always raise.
    """

    def __init__(
        self,
        rom: bytes,
        config: SessionConfig = SessionConfig(),
        random_source: Optional[RandomSource] = None,
        logger: Optional[EmulatorLogger] = None,
        source: str = "<memory>",
    ):
        if config.on_invalid_opcode not in INVALID_OPCODE_POLICIES:
            raise ValueError(
                f"Unsupported on_invalid_opcode '{config.on_invalid_opcode}'. "
                f"Supported policies: {list(INVALID_OPCODE_POLICIES)}"
            )
        if config.instruction_frequency <= 0 or config.timer_frequency <= 0:
            raise ValueError("instruction_frequency and timer_frequency must be positive")

        self.rom = bytes(rom)
        self.config = config
        self.quirks = create_quirks(config.quirks)
        self.random_source = random_source
        self.logger = logger or EmulatorLogger(log_level=config.log_level)
        self.source = source
        self.state = None
        self.frame_count = 0
        self.cycle_count = 0
        self.reset()

    @classmethod
    def from_file(cls, rom_path: str, config: SessionConfig = SessionConfig(), **kwargs) -> "Chip8Session":
        with open(rom_path, 'rb') as f:
            rom = f.read()
        return cls(rom, config, source=rom_path, **kwargs)

    def reset(self, seed: Optional[int] = None) -> EmulatorState:
        """Rebuild the machine from the ROM bytes.

        Raises:
            RomTooLarge: the ROM does not fit in memory
        """
        self.state = create_machine(
            self.rom,
            seed=seed if seed is not None else self.config.seed,
            quirks=self.quirks,
            random_source=self.random_source,
        )
        self.frame_count = 0
        self.cycle_count = 0
        self.logger.log_load(len(self.rom), self.source)
        return self.state

    def press(self, key: int):
        self.state = set_key(self.state, key, True)

    def release(self, key: int):
        self.state = set_key(self.state, key, False)

    def set_keys(self, keys: Mapping[int, bool]):
        self.state = set_keypad(self.state, keys)

    def _halts(self, status: ExecutionStatus) -> bool:
        """Stack faults always halt, invalid opcodes only under the "halt" policy."""
        return status.is_fault or (
            status == ExecutionStatus.INVALID_OPCODE and self.config.on_invalid_opcode == "halt"
        )

    def _report(self, status: int, opcode: int, pc: int):
        """Count and log one cycle outcome through the logger, raise when it halts."""
        status = ExecutionStatus(int(status))
        report = status.is_fault or self.config.on_invalid_opcode != "ignore"
        self.logger.log_record(status, opcode, pc, report=report)
        if self._halts(status):
            raise error_for_status(status, int(opcode), instruction_address(status, pc))

    def step(self) -> ExecutionStatus:
        """Run a single cycle. Timers are left alone."""
        self.state = _jit_cycle(self.state)
        self.cycle_count += 1
        if self.config.trace:
            self.logger.log_cycle(self.state)

        self._report(self.state.status, self.state.opcode, self.state.pc)
        return ExecutionStatus(int(self.state.status))

    def tick(self):
        """Run a single timer tick."""
        self.state = tick_timers(self.state)

    def run_frame(self) -> CycleRecord:
        """Run one frame: ``cycles_per_frame`` cycles, then one timer tick.

        When a cycle halts, the frame is replayed from its start up to that
        cycle. The state is left on the halting cycle and the timers do not tick.

        Returns:
            Per-cycle records of the frame as numpy arrays
        """
        start = self.state
        state, records = run_frame(start, self.config.cycles_per_frame)
        records = jax.tree.map(np.asarray, records)

        halted = [
            index for index, status in enumerate(records.status)
            if self._halts(ExecutionStatus(int(status)))
        ]
        if halted:
            length = halted[0] + 1
            state = start
            for _ in range(length):
                state = _jit_cycle(state)
            records = jax.tree.map(lambda field: field[:length], records)
        else:
            self.frame_count += 1

        self.state = state
        self.cycle_count += len(records.status)
        for status, opcode, pc in zip(records.status, records.opcode, records.pc):
            self._report(status, opcode, pc)
        return records

    def run(self, num_frames: int, progress: bool = False) -> EmulatorState:
        """Run ``num_frames`` frames, optionally with a progress bar."""
        for _ in tqdm(range(num_frames), desc="Emulating", unit="frame", disable=not progress):
            self.run_frame()
        return self.state

    @property
    def display(self) -> np.ndarray:
        """Framebuffer as a read-only (width, height) boolean array."""
        display = np.array(self.state.display, dtype=np.bool_)
        display.flags.writeable = False
        return display

    @property
    def sound_active(self) -> bool:
        return bool(self.state.sound_timer > 0)
