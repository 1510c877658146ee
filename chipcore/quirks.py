"""Behavioral variations between historical CHIP-8 interpreters."""

from flax.struct import dataclass


@dataclass(frozen=True)
class Quirks:
    """Quirk toggles. The defaults reproduce the reference interpreter.

    Attributes:
        shift_uses_vy: 8XY6/8XYE shift VY and store the result in VX (COSMAC VIP)
        load_store_increments_index: FX55/FX65 leave I pointing past the last register
        jump_with_vx: BXNN jumps to XNN + VX instead of NNN + V0 (SUPER-CHIP)
        logic_resets_vf: 8XY1/8XY2/8XY3 clear VF (COSMAC VIP)
        wrap_sprites: sprite pixels past the screen edge wrap around instead of clipping
    """
    shift_uses_vy: bool = False
    load_store_increments_index: bool = False
    jump_with_vx: bool = False
    logic_resets_vf: bool = False
    wrap_sprites: bool = False


QUIRK_PRESETS = {
    "default": Quirks(),
    "cosmac": Quirks(
        shift_uses_vy=True,
        load_store_increments_index=True,
        logic_resets_vf=True,
    ),
    "schip": Quirks(jump_with_vx=True),
}


def create_quirks(preset: str = "default") -> Quirks:
    """Get a predefined quirk set.

    Args:
        preset: Preset name ("default", "cosmac", "schip")

    Returns:
        The matching Quirks instance
    """
    if preset not in QUIRK_PRESETS:
        raise ValueError(
            f"Unknown quirk preset '{preset}'. Available: {list(QUIRK_PRESETS.keys())}"
        )

    return QUIRK_PRESETS[preset]
