"""CHIP-8 error types and execution status codes."""

from enum import IntEnum


class ExecutionStatus(IntEnum):
    """Outcome of a single executed instruction, stored in ``EmulatorState.status``."""
    EXECUTED = 0
    INVALID_OPCODE = 1
    STACK_OVERFLOW = 2
    STACK_UNDERFLOW = 3

    @property
    def is_fault(self) -> bool:
        """Stack faults roll the cycle back; invalid opcodes do not."""
        return self >= ExecutionStatus.STACK_OVERFLOW


class Chip8Error(Exception):
    """Base class for emulator errors."""


class RomTooLarge(Chip8Error):
    """ROM image does not fit in the program region."""

    def __init__(self, size: int, max_size: int):
        self.size = size
        self.max_size = max_size
        super().__init__(f"ROM is {size} bytes, maximum is {max_size} bytes")


class ExecutionError(Chip8Error):
    """Instruction could not be executed as written."""

    status = ExecutionStatus.EXECUTED
    reason = "execution error"

    def __init__(self, opcode: int, pc: int):
        self.opcode = opcode
        self.pc = pc
        super().__init__(f"{self.reason}: opcode 0x{opcode:04X} at 0x{pc:03X}")


class InvalidOpcode(ExecutionError):
    status = ExecutionStatus.INVALID_OPCODE
    reason = "Invalid opcode"


class StackOverflow(ExecutionError):
    status = ExecutionStatus.STACK_OVERFLOW
    reason = "Stack overflow"


class StackUnderflow(ExecutionError):
    status = ExecutionStatus.STACK_UNDERFLOW
    reason = "Stack underflow"


_ERRORS_BY_STATUS = {
    error.status: error for error in (InvalidOpcode, StackOverflow, StackUnderflow)
}


def error_for_status(status: int, opcode: int, pc: int) -> ExecutionError | None:
    """Build the exception matching ``status``, or None when the instruction executed."""
    error_type = _ERRORS_BY_STATUS.get(ExecutionStatus(int(status)))
    if error_type is None:
        return None
    return error_type(int(opcode), int(pc))
