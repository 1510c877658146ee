"""CHIP-8 ALU operations (8xxx).

Every operation maps ``(vx, vy, vf)`` to ``(result, vf)``. Operations without a
flag effect hand ``vf`` back untouched. The flag is written after the result,
so with X = F the flag wins.
"""

import jax
import jax.lax
import jax.numpy as jnp
from chipcore.state import EmulatorState
from chipcore.decode import DecodedInstruction
from chipcore.constants import FLAG_REGISTER


def _flag(condition) -> jnp.ndarray:
    return jnp.astype(condition, jnp.uint8)


def alu_set(vx, vy, vf):
    """8XY0 - Set: VX = VY."""
    return vy, vf


def alu_or(vx, vy, vf):
    """8XY1 - Binary OR: VX |= VY."""
    return vx | vy, vf


def alu_and(vx, vy, vf):
    """8XY2 - Binary AND: VX &= VY."""
    return vx & vy, vf


def alu_xor(vx, vy, vf):
    """8XY3 - Logical XOR: VX ^= VY."""
    return vx ^ vy, vf


def alu_add(vx, vy, vf):
    """8XY4 - Add: VX += VY, VF = carry."""
    result = jnp.astype(vx, jnp.int32) + jnp.astype(vy, jnp.int32)
    return jnp.astype(result & 0xFF, jnp.uint8), _flag(result > 0xFF)


def alu_sub_xy(vx, vy, vf):
    """8XY5 - Subtract: VX -= VY, VF = 1 when VX > VY."""
    return vx - vy, _flag(vx > vy)


def alu_shift_right(vx, vy, vf):
    """8XY6 - Shift right: VX >>= 1, VF = shifted out bit."""
    return vx >> 1, vx & 1


def alu_sub_yx(vx, vy, vf):
    """8XY7 - Subtract: VX = VY - VX, VF = 1 when VY > VX."""
    return vy - vx, _flag(vy > vx)


def alu_shift_left(vx, vy, vf):
    """8XYE - Shift left: VX <<= 1, VF = shifted out bit."""
    return vx << 1, (vx >> 7) & 1


def alu_undefined(vx, vy, vf):
    """Undefined ALU operation, leaves VX and VF alone."""
    return vx, vf


ALU_UNDEFINED = 9

# Low nibble -> branch of the ALU switch
ALU_DISPATCH = jnp.array(
    [0, 1, 2, 3, 4, 5, 6, 7, 9, 9, 9, 9, 9, 9, 8, 9], dtype=jnp.int32
)


def is_known_alu_instruction(instruction: DecodedInstruction) -> jnp.ndarray:
    return ALU_DISPATCH[instruction.n] != ALU_UNDEFINED


def execute_alu_operation(state: EmulatorState, instruction: DecodedInstruction) -> EmulatorState:
    """8XYN - ALU operations dispatcher."""
    vx = state.V[instruction.x]
    vy = state.V[instruction.y]
    vf = state.V[FLAG_REGISTER]
    quirks = state.quirks

    def _shift(operation):
        def shift(vx, vy, vf):
            return operation(vy if quirks.shift_uses_vy else vx, vy, vf)
        return shift

    def _logic(operation):
        def logic(vx, vy, vf):
            result, vf = operation(vx, vy, vf)
            return result, jnp.zeros_like(vf) if quirks.logic_resets_vf else vf
        return logic

    operations = [
        alu_set, _logic(alu_or), _logic(alu_and), _logic(alu_xor), alu_add,
        alu_sub_xy, _shift(alu_shift_right), alu_sub_yx, _shift(alu_shift_left), alu_undefined,
    ]

    result, vf = jax.lax.switch(ALU_DISPATCH[instruction.n], operations, vx, vy, vf)

    new_V = state.V.at[instruction.x].set(jnp.astype(result, jnp.uint8))
    new_V = new_V.at[FLAG_REGISTER].set(jnp.astype(vf, jnp.uint8))
    return state.replace(V=new_V)
