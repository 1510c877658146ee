"""Test configuration and fixtures for CHIP-8 emulator tests."""

import io

import pytest
import jax.numpy as jnp
from chipcore import create_state, create_quirks, load_rom
from chipcore.logging import EmulatorLogger


@pytest.fixture
def fresh_state():
    """Provide a fresh emulator state for each test."""
    return create_state()


@pytest.fixture
def cosmac_state():
    """Provide a fresh state with COSMAC VIP quirks."""
    return create_state(quirks=create_quirks("cosmac"))


@pytest.fixture
def schip_state():
    """Provide a fresh state with SUPER-CHIP quirks."""
    return create_state(quirks=create_quirks("schip"))


@pytest.fixture
def log_stream():
    return io.StringIO()


@pytest.fixture
def quiet_logger(log_stream):
    """Logger writing plain lines into an in-memory stream."""
    return EmulatorLogger(log_level="DEBUG", show_timestamps=False, stream=log_stream)


def setup_sprite_in_memory(state, address, sprite_bytes):
    """Helper to put sprite data in memory."""
    return state.replace(
        memory=state.memory.at[address:address+len(sprite_bytes)].set(
            jnp.array(sprite_bytes, dtype=jnp.uint8)
        )
    )


def program(*words):
    """Helper to turn instruction words into ROM bytes."""
    return bytes(byte for word in words for byte in (word >> 8, word & 0xFF))


def machine(*words, state=None):
    """Helper to load instruction words as a ROM into a fresh state."""
    return load_rom(state if state is not None else create_state(), program(*words))
