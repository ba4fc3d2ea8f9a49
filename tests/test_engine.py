"""
Execution Engine Tests
======================

Tests for the Machine: opcode semantics, the call/loop stack, halting,
breakpoints and step budgets, plus the end-to-end drawing scenarios.

Copyright (c) 2025-2026 Hugo José Pinto & Contributors
"""

import pytest

import penplot
from penplot.color import Color
from penplot.errors import AddressOutOfRangeError, StepLimitError
from penplot.machine import (
    BlendMode,
    CallFrame,
    LoopFrame,
    Machine,
    MachineConfig,
    MachineState,
    StopReason,
    run,
)

RED = Color(255, 0, 0, 255)
GREEN = Color(0, 255, 0, 255)
BLACK = Color(0, 0, 0, 255)


# =============================================================================
# Drawing Scenarios
# =============================================================================

class TestScenarios:
    """End-to-end programs with known canvases."""

    def test_red_dot(self):
        canvas = run(
            "MOVE 5 5\nRGBA 255 0 0 255\nBLOT\nHALT",
            MachineConfig(width=10, height=10),
        )
        assert canvas.painted() == {(5, 5): RED}
        for y in range(10):
            for x in range(10):
                if (x, y) != (5, 5):
                    assert canvas.get_pixel(x, y) == Color.transparent()

    def test_walk_along_heading_zero(self):
        canvas = run(
            "FACE 0\nWALK 10\nRGB 0 255 0\nBLOT\nHALT",
            MachineConfig(width=20, height=20),
        )
        assert canvas.painted() == {(10, 0): GREEN}

    def test_call_returns_after_call(self, make_machine):
        machine = make_machine("CALL sub\nHALT\nBLOT @ sub\nRTRN", width=4, height=4)
        blots = []
        machine.on_instruction = lambda pc, instruction: blots.append(pc) if pc == 2 else None

        event = machine.run()

        assert event.reason is StopReason.HALT
        assert event.address == 1
        assert blots == [2]
        assert machine.canvas.painted() == {(0, 0): BLACK}
        assert machine.stack == ()

    def test_runs_are_deterministic(self):
        source = (
            "MOVE 16 16\n"
            "RGBA 10 200 30 180\n"
            "LOOP side 12 @ start\n"
            "HALT\n"
            "WALK 9.3 @ side\n"
            "TURN 31\n"
            "BLOT\n"
            "RTRN\n"
        )
        config = MachineConfig(width=32, height=32, trace_moves=True, blend=BlendMode.OVER)
        first = run(source, config)
        second = run(source, config)
        assert first.to_bytes() == second.to_bytes()
        assert first == second
        assert first.painted()


# =============================================================================
# Pen Instructions
# =============================================================================

class TestPenInstructions:
    """Test instructions that move the pen or change its colour."""

    def test_move_and_shift(self, make_machine):
        machine = make_machine("MOVE 3 4\nSHFT -1 2.5")
        machine.run()
        assert machine.pen.position == (2.0, 6.5)

    def test_walk_after_turn(self, make_machine):
        machine = make_machine("FACE 45\nTURN 45\nWALK 5\nBLOT", width=10, height=10)
        machine.run()
        assert machine.pen.heading == 90.0
        assert machine.pen.x == pytest.approx(0.0)
        assert machine.pen.y == pytest.approx(5.0)
        assert machine.canvas.painted() == {(0, 5): BLACK}

    def test_blot_rounds_half_away_from_zero(self, make_machine):
        machine = make_machine("MOVE 2.5 1.49\nBLOT", width=5, height=5)
        machine.run()
        assert machine.canvas.painted() == {(3, 1): BLACK}

    def test_blot_outside_canvas_is_dropped(self, make_machine):
        machine = make_machine("MOVE -1 0\nBLOT\nMOVE 5 5\nBLOT\nMOVE 4 4\nBLOT",
                               width=5, height=5)
        event = machine.run()
        assert event.reason.is_halt
        assert machine.canvas.painted() == {(4, 4): BLACK}

    def test_blank_pen_draws_nothing(self, make_machine):
        machine = make_machine("BLNK\nMOVE 1 1\nBLOT", width=4, height=4)
        machine.run()
        assert machine.pen.color == Color.transparent()
        assert machine.canvas.painted() == {}

    def test_colour_forms(self, make_machine):
        machine = make_machine("RGBA #0000FF80")
        machine.step()
        assert machine.pen.color == Color(0, 0, 255, 128)

    def test_later_blot_replaces(self, make_machine):
        machine = make_machine("RGBA 255 0 0 255\nBLOT\nRGBA 0 0 255 100\nBLOT",
                               width=2, height=2)
        machine.run()
        assert machine.canvas.get_pixel(0, 0) == Color(0, 0, 255, 100)

    def test_over_blend(self, make_machine):
        machine = make_machine("RGBA 255 0 0 128\nBLOT", width=2, height=2,
                               background=Color(255, 255, 255), blend=BlendMode.OVER)
        machine.run()
        assert machine.canvas.get_pixel(0, 0) == Color(255, 127, 127, 255)

    def test_initial_pen_from_config(self, make_machine):
        machine = make_machine("BLOT", width=8, height=8, origin=(3, 4), heading=90,
                               pen_color=RED)
        assert machine.pen.position == (3.0, 4.0)
        assert machine.pen.heading == 90.0
        machine.run()
        assert machine.canvas.painted() == {(3, 4): RED}

    def test_blot_at_infinite_position_is_dropped(self, make_machine):
        machine = make_machine(
            "MOVE 1e308 0\nSHFT 1e308 0\nBLOT\nSHFT -1e308 0\nBLOT\nMOVE 1 1\nBLOT",
            width=4, height=4,
        )
        event = machine.run()
        assert event.reason is StopReason.END_OF_PROGRAM
        assert machine.canvas.painted() == {(1, 1): BLACK}

    def test_overflowed_pen_does_not_stop_run(self):
        canvas = run("MOVE 1e308 0\nSHFT 1e308 0\nBLOT\nHALT", MachineConfig(width=4, height=4))
        assert canvas.painted() == {}

    def test_walk_with_infinite_heading(self, make_machine):
        machine = make_machine("TURN 1e308\nTURN 1e308\nWALK 1\nBLOT\nMOVE 2 2\nBLOT",
                               width=4, height=4, trace_moves=True)
        machine.run()
        assert machine.pen.position == (2.0, 2.0)
        assert machine.canvas.painted() == {(2, 2): BLACK}

    def test_traced_move_to_infinity_draws_nothing(self, make_machine):
        machine = make_machine("MOVE 2 0\nSHFT 1e308 0\nSHFT 1e308 0\nMOVE 1 1\nMOVE 1 3",
                               width=4, height=4, trace_moves=True)
        event = machine.run()
        assert event.reason.is_halt
        assert set(machine.canvas.painted()) == {
            (0, 0), (1, 0), (2, 0), (3, 0), (1, 1), (1, 2), (1, 3),
        }


class TestTraceMode:
    """Test line drawing when trace_moves is enabled."""

    def test_moves_do_not_draw_by_default(self, make_machine):
        machine = make_machine("MOVE 3 0\nWALK 2", width=8, height=8)
        machine.run()
        assert machine.canvas.painted() == {}

    def test_move_draws_line(self, make_machine):
        machine = make_machine("MOVE 3 0", width=8, height=8, trace_moves=True)
        machine.run()
        assert set(machine.canvas.painted()) == {(0, 0), (1, 0), (2, 0), (3, 0)}

    def test_diagonal_walk(self, make_machine):
        machine = make_machine("SHFT 2 2", width=8, height=8, trace_moves=True)
        machine.run()
        assert set(machine.canvas.painted()) == {(0, 0), (1, 1), (2, 2)}

    def test_blank_pen_lifts(self, make_machine):
        machine = make_machine("BLNK\nMOVE 3 3\nRGB 255 0 0\nSHFT 0 1",
                               width=8, height=8, trace_moves=True)
        machine.run()
        assert machine.canvas.painted() == {(3, 3): RED, (3, 4): RED}


# =============================================================================
# Control Flow
# =============================================================================

class TestControlFlow:
    """Test GOTO, JUMP, CALL, RTRN, LOOP and HALT."""

    def test_goto_skips(self, make_machine):
        machine = make_machine("GOTO end\nBLOT\nHALT @ end", width=2, height=2)
        machine.run()
        assert machine.canvas.painted() == {}
        assert machine.steps_executed == 2

    def test_relative_jump(self, make_machine):
        machine = make_machine("JUMP 2\nBLOT\nNOOP\nHALT", width=2, height=2)
        machine.run()
        assert machine.canvas.painted() == {}
        assert machine.pc == 3

    def test_jump_before_start_raises(self, make_machine):
        machine = make_machine("NOOP\nJUMP -5")
        with pytest.raises(AddressOutOfRangeError) as exc_info:
            machine.run()
        assert exc_info.value.address == -4
        assert exc_info.value.source_address == 1
        assert machine.halted

    def test_jump_before_start_never_returns_canvas(self):
        with pytest.raises(AddressOutOfRangeError):
            run("MOVE 1 1\nBLOT\nJUMP -3", MachineConfig(width=4, height=4))

    def test_empty_stack_return_is_noop(self, make_machine):
        machine = make_machine("RTRN\nMOVE 2 2\nBLOT", width=4, height=4)
        first = machine.step()
        assert first.reason is StopReason.STEP
        assert machine.pc == 1
        assert machine.stack == ()
        event = machine.run()
        assert event.reason is StopReason.END_OF_PROGRAM
        assert machine.canvas.painted() == {(2, 2): BLACK}

    def test_loop_matches_unrolled_calls(self):
        config = MachineConfig(width=8, height=8)
        looped = Machine(config)
        looped.load_source("LOOP body 3\nHALT\nSHFT 1 0 @ body\nBLOT\nRTRN")
        unrolled = Machine(config)
        unrolled.load_source(
            "CALL body\nCALL body\nCALL body\nHALT\nSHFT 1 0 @ body\nBLOT\nRTRN"
        )

        assert looped.run().reason is StopReason.HALT
        assert unrolled.run().reason is StopReason.HALT

        assert looped.canvas == unrolled.canvas
        assert set(looped.canvas.painted()) == {(1, 0), (2, 0), (3, 0)}
        assert looped.pen.position == unrolled.pen.position == (3.0, 0.0)
        assert looped.stack == ()

    def test_loop_body_runs_count_times(self, make_machine):
        machine = make_machine("LOOP body 3\nHALT\nNOOP @ body\nRTRN")
        entries = []
        machine.on_instruction = lambda pc, instruction: entries.append(pc)
        machine.run()
        assert entries.count(2) == 3
        assert entries[-1] == 1

    @pytest.mark.parametrize("count", [0, -2])
    def test_non_positive_loop_is_skipped(self, make_machine, count):
        machine = make_machine(f"LOOP body {count}\nHALT\nBLOT @ body\nRTRN",
                               width=2, height=2)
        event = machine.run()
        assert event.reason is StopReason.HALT
        assert machine.canvas.painted() == {}
        assert machine.steps_executed == 2

    def test_nested_loops(self, make_machine):
        machine = make_machine(
            "LOOP outer 2\n"
            "HALT\n"
            "LOOP inner 3 @ outer\n"
            "RTRN\n"
            "SHFT 1 0 @ inner\n"
            "RTRN\n"
        )
        machine.run()
        assert machine.pen.x == 6.0
        assert machine.stack == ()

    def test_call_inside_loop(self, make_machine):
        machine = make_machine(
            "LOOP body 2\n"
            "HALT\n"
            "CALL step @ body\n"
            "RTRN\n"
            "SHFT 0 1 @ step\n"
            "RTRN\n"
        )
        machine.run()
        assert machine.pen.y == 2.0

    def test_comments_take_addresses(self, make_machine):
        machine = make_machine("; first\nGOTO 3\n; skipped\nMOVE 1 1 @ target")
        machine.run()
        assert machine.pen.position == (1.0, 1.0)


# =============================================================================
# Halting
# =============================================================================

class TestHalting:
    """Test explicit and implicit halts."""

    def test_halt_stops_at_its_address(self, make_machine):
        machine = make_machine("NOOP\nHALT\nBLOT", width=2, height=2)
        event = machine.run()
        assert event.reason is StopReason.HALT
        assert event.address == 1
        assert machine.state is MachineState.HALTED
        assert machine.canvas.painted() == {}

    def test_running_off_the_end(self, make_machine):
        machine = make_machine("NOOP\nNOOP")
        event = machine.run()
        assert event.reason is StopReason.END_OF_PROGRAM
        assert event.address == 2
        assert machine.halted

    def test_goto_past_the_end(self, make_machine):
        machine = make_machine("GOTO 50\nBLOT", width=2, height=2)
        event = machine.run()
        assert event.reason is StopReason.END_OF_PROGRAM
        assert machine.canvas.painted() == {}

    def test_empty_program(self):
        machine = Machine()
        event = machine.run()
        assert event.reason is StopReason.END_OF_PROGRAM
        assert event.steps == 0

    def test_halted_machine_stays_halted(self, make_machine):
        machine = make_machine("HALT")
        first = machine.run()
        assert machine.step() is first
        assert machine.run() is first
        assert machine.steps_executed == 1

    def test_reset(self, make_machine):
        machine = make_machine("MOVE 1 1\nBLOT\nCALL 3\nNOOP", width=4, height=4)
        machine.run(max_steps=3)
        machine.reset()
        assert machine.pc == 0
        assert machine.state is MachineState.RUNNING
        assert machine.stack == ()
        assert machine.pen.position == (0.0, 0.0)
        assert machine.canvas.painted() == {}
        assert machine.steps_executed == 0


# =============================================================================
# Step Budgets and Breakpoints
# =============================================================================

class TestStepBudget:
    """Test detection of non-terminating programs."""

    def test_infinite_goto_hits_budget(self, make_machine):
        machine = make_machine("NOOP @ start\nGOTO start")
        event = machine.run(max_steps=1000)
        assert event.reason is StopReason.MAX_STEPS
        assert event.steps == 1000
        assert not machine.halted

    def test_budget_can_resume(self, make_machine):
        machine = make_machine("NOOP\nNOOP\nNOOP\nHALT")
        assert machine.run(max_steps=2).reason is StopReason.MAX_STEPS
        assert machine.pc == 2
        assert machine.run(max_steps=2).reason is StopReason.HALT

    def test_run_raises_step_limit(self):
        with pytest.raises(StepLimitError) as exc_info:
            run("NOOP @ start\nGOTO start", max_steps=50)
        assert exc_info.value.steps == 50

    def test_budget_not_needed_for_halting_program(self):
        canvas = penplot.run("BLOT\nHALT", MachineConfig(width=1, height=1), max_steps=2)
        assert canvas.get_pixel(0, 0) == BLACK


class TestBreakpoints:
    """Test stopping before an address."""

    def test_stops_before_instruction(self, make_machine):
        machine = make_machine("NOOP\nNOOP\nBLOT\nHALT", width=2, height=2)
        machine.add_breakpoint(2)

        event = machine.run()
        assert event.reason is StopReason.BREAKPOINT
        assert event.address == 2
        assert event.steps == 2
        assert machine.canvas.painted() == {}

        event = machine.run()
        assert event.reason is StopReason.HALT
        assert machine.canvas.painted() == {(0, 0): BLACK}

    def test_stack_visible_at_breakpoint(self, make_machine):
        machine = make_machine("CALL sub\nHALT\nBLOT @ sub\nRTRN")
        machine.add_breakpoint(2)
        machine.run()
        assert machine.stack == (CallFrame(return_address=1),)

    def test_loop_frame_counts_down(self, make_machine):
        machine = make_machine("LOOP body 2\nHALT\nNOOP @ body\nRTRN")
        machine.add_breakpoint(2)
        machine.run()
        assert machine.stack == (LoopFrame(return_address=1, body_address=2, remaining=2),)
        machine.run()
        assert machine.stack == (LoopFrame(return_address=1, body_address=2, remaining=1),)
        assert machine.run().reason is StopReason.HALT

    def test_run_until(self, make_machine):
        machine = make_machine("NOOP\nNOOP\nNOOP\nHALT")
        assert machine.run_until(3) is True
        assert machine.pc == 3
        assert 3 not in machine.breakpoints

    def test_run_until_unreached(self, make_machine):
        machine = make_machine("HALT\nNOOP")
        assert machine.run_until(1) is False

    def test_remove_and_clear(self, make_machine):
        machine = make_machine("NOOP\nNOOP\nHALT")
        machine.add_breakpoint(1)
        machine.add_breakpoint(2)
        machine.remove_breakpoint(1)
        assert machine.breakpoints.addresses == {2}
        machine.clear_breakpoints()
        assert len(machine.breakpoints) == 0
        assert machine.run().reason is StopReason.HALT

    def test_negative_breakpoint_rejected(self):
        with pytest.raises(ValueError):
            Machine().add_breakpoint(-1)

    def test_stop_event_str(self, make_machine):
        machine = make_machine("NOOP\nHALT")
        assert str(machine.run()) == "Halted at address 1"
