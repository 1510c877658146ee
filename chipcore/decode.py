"""CHIP-8 instruction decoding."""

from chex import dataclass


@dataclass(frozen=True)
class DecodedInstruction:
    """Instruction word split into its operand fields.

    Fields are Python ints when decoding a Python int and JAX scalars when
    decoding a traced word.
    """
    raw: int
    opcode: int  # family nibble, bits 12-15
    x: int       # register index, bits 8-11
    y: int       # register index, bits 4-7
    n: int       # 4-bit immediate, bits 0-3
    nn: int      # 8-bit immediate, bits 0-7
    nnn: int     # 12-bit address, bits 0-11


def decode(instruction: int) -> DecodedInstruction:
    """Decode a 16-bit instruction word. Total over 0x0000-0xFFFF."""
    return DecodedInstruction(
        raw=instruction,
        opcode=(instruction >> 12) & 0xF,
        x=(instruction >> 8) & 0xF,
        y=(instruction >> 4) & 0xF,
        n=instruction & 0x000F,
        nn=instruction & 0x00FF,
        nnn=instruction & 0x0FFF,
    )
