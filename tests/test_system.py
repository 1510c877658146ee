"""Tests for system instructions (0xxx) and the call stack."""

import pytest
import jax.numpy as jnp
from chipcore import execute, ExecutionStatus, STACK_SIZE
from chipcore.stack import push, pop, is_empty, is_full


def test_execute_clear_screen(fresh_state):
    """Test 00E0 - Clear display."""
    state = fresh_state.replace(display=fresh_state.display.at[0, 0].set(1))

    state = execute(state, 0x00E0)

    assert jnp.sum(state.display) == 0


def test_execute_call_and_return(fresh_state):
    """Test 2NNN (call) and 00EE (return) together."""
    state = fresh_state
    initial_pc = state.pc

    # Call subroutine
    state = execute(state, 0x2300)  # Call 0x300
    assert state.pc == 0x300
    assert state.stack.data[state.stack.pointer - 1] == initial_pc

    # Return from subroutine
    state = execute(state, 0x00EE)  # Return
    assert state.pc == initial_pc
    assert state.stack.pointer == 0


def test_nested_calls(fresh_state):
    """Returns unwind calls in reverse order."""
    state = execute(fresh_state, 0x2300)  # pushes 0x200
    state = state.replace(pc=jnp.asarray(0x302, dtype=jnp.uint16))
    state = execute(state, 0x2400)  # pushes 0x302

    state = execute(state, 0x00EE)
    assert state.pc == 0x302
    state = execute(state, 0x00EE)
    assert state.pc == 0x200


def test_machine_code_call_is_invalid(fresh_state):
    """0NNN is reported as an invalid opcode and runs as a no-op."""
    state = execute(fresh_state, 0x0123)

    assert int(state.status) == ExecutionStatus.INVALID_OPCODE
    assert state.pc == fresh_state.pc
    assert jnp.array_equal(state.memory, fresh_state.memory)


class TestStackFaults:
    """Stack faults leave the state untouched apart from the status."""

    def test_return_on_empty_stack(self, fresh_state):
        state = execute(fresh_state, 0x00EE)

        assert int(state.status) == ExecutionStatus.STACK_UNDERFLOW
        assert state.pc == fresh_state.pc
        assert state.stack.pointer == 0

    def test_call_on_full_stack(self, fresh_state):
        state = fresh_state
        for _ in range(STACK_SIZE):
            state = execute(state, 0x2300)
        assert int(state.status) == ExecutionStatus.EXECUTED
        assert state.stack.pointer == STACK_SIZE

        faulted = execute(state, 0x2400)

        assert int(faulted.status) == ExecutionStatus.STACK_OVERFLOW
        assert faulted.pc == 0x300
        assert faulted.stack.pointer == STACK_SIZE
        assert jnp.array_equal(faulted.stack.data, state.stack.data)


class TestStackOperations:
    """Test the raw push/pop helpers."""

    def test_push_pop(self, fresh_state):
        stack = push(fresh_state.stack, jnp.asarray(0x2AB, dtype=jnp.uint16))
        assert not is_empty(stack)

        stack, address = pop(stack)
        assert address == 0x2AB
        assert is_empty(stack)

    def test_push_masks_address(self, fresh_state):
        stack = push(fresh_state.stack, jnp.asarray(0x1234, dtype=jnp.uint16))
        assert stack.data[0] == 0x234

    @pytest.mark.parametrize("pushes,full", [(0, False), (STACK_SIZE - 1, False), (STACK_SIZE, True)])
    def test_is_full(self, fresh_state, pushes, full):
        stack = fresh_state.stack
        for _ in range(pushes):
            stack = push(stack, jnp.asarray(0x200, dtype=jnp.uint16))
        assert bool(is_full(stack)) == full
