"""Console logging utilities for the emulator core.

Provides a small leveled console logger and an emulator flavored subclass that
knows how to report loads, execution statuses and per-cycle diagnostic traces.
"""

import time
import sys

from chipcore.errors import ExecutionStatus
from chipcore.state import EmulatorState
from chipcore.emulator import instruction_address
from chipcore.trace import format_trace


LEVELS = {
    "DEBUG": 0,
    "INFO": 1,
    "WARNING": 2,
    "ERROR": 3,
    "CRITICAL": 4,
}

COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
    "RESET": "\033[0m",
}


class ConsoleLogger:
    """Leveled console logger with optional colors and elapsed-time stamps."""

    def __init__(
        self,
        name: str = "chipcore",
        log_level: str = "INFO",
        use_colors: bool = True,
        show_timestamps: bool = True,
        stream=None,
    ):
        if log_level.upper() not in LEVELS:
            raise ValueError(
                f"Unknown log level '{log_level}'. Available: {list(LEVELS.keys())}"
            )
        self.name = name
        self.log_level = log_level.upper()
        self.stream = stream if stream is not None else sys.stdout
        self.use_colors = (
            use_colors and hasattr(self.stream, "isatty") and self.stream.isatty()
        )
        self.show_timestamps = show_timestamps
        self.start_time = time.time()

    def _should_log(self, level: str) -> bool:
        """Check if message should be logged based on current log level."""
        return LEVELS.get(level.upper(), 1) >= LEVELS[self.log_level]

    def _format_message(self, level: str, message: str) -> str:
        """Format log message with timestamp, level, and colors."""
        timestamp = (
            f"[{time.time() - self.start_time:8.2f}s]" if self.show_timestamps else ""
        )
        level_str = f"[{level:>8s}]"
        name_str = f"[{self.name}]"

        if self.use_colors:
            level_str = f"{COLORS.get(level.upper(), '')}{level_str}{COLORS['RESET']}"

        return f"{timestamp}{level_str}{name_str} {message}"

    def log(self, level: str, message: str):
        """Log a message at the specified level."""
        if self._should_log(level):
            print(self._format_message(level, message), file=self.stream, flush=True)

    def debug(self, message: str):
        self.log("DEBUG", message)

    def info(self, message: str):
        self.log("INFO", message)

    def warning(self, message: str):
        self.log("WARNING", message)

    def error(self, message: str):
        self.log("ERROR", message)

    def critical(self, message: str):
        self.log("CRITICAL", message)


class EmulatorLogger(ConsoleLogger):
    """Logger for emulator runs: loads, statuses and cycle traces."""

    def __init__(self, name: str = "chipcore", **kwargs):
        super().__init__(name, **kwargs)
        self.status_counts = {status: 0 for status in ExecutionStatus}

    def log_load(self, rom_size: int, source: str = "<memory>"):
        self.info(f"Loaded {rom_size} byte ROM from {source}")

    def log_cycle(self, state: EmulatorState):
        """Diagnostic trace of the last cycle, at DEBUG level."""
        if self._should_log("DEBUG"):
            self.debug(format_trace(state))

    def log_status(self, state: EmulatorState) -> ExecutionStatus:
        """Report a non-EXECUTED status and count it. Returns the status."""
        return self.log_record(state.status, state.opcode, state.pc)

    def log_record(self, status, opcode, pc, report: bool = True) -> ExecutionStatus:
        """Count one cycle outcome and report it unless it executed or ``report`` is off.

        ``pc`` is the program counter after the cycle, as stored in the state
        and in ``CycleRecord``.
        """
        status = ExecutionStatus(int(status))
        self.status_counts[status] += 1
        if status == ExecutionStatus.EXECUTED or not report:
            return status

        pc = instruction_address(status, pc)
        message = f"{status.name} opcode=0x{int(opcode):04X} pc=0x{pc:03X}"
        if status.is_fault:
            self.error(message)
        else:
            self.warning(message)
        return status

    def log_summary(self):
        counts = ", ".join(f"{status.name}={count}" for status, count in self.status_counts.items())
        self.info(f"Cycle statuses: {counts}")
