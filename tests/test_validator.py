"""Tests for the instruction validator."""
import pytest

from cursor_agent import (
    CursorInstruction,
    InstructionValidationError,
    ValidationErrorKind,
    validate_instructions,
)


VALID = [
    {"type": "move", "x": 100, "y": 200},
    {"type": "click", "button": "left"},
    {"type": "double-click", "button": "right"},
    {"type": "drag", "x": 300, "y": 400},
]


def _kind(instructions) -> ValidationErrorKind:
    with pytest.raises(InstructionValidationError) as exc_info:
        validate_instructions(instructions)
    return exc_info.value.kind


class TestValidInput:

    def test_accepts_all_instruction_types(self):
        assert validate_instructions(VALID) is None

    def test_accepts_cursor_instruction_objects(self):
        validate_instructions([
            CursorInstruction(type="move", x=1, y=2),
            CursorInstruction(type="click"),
            CursorInstruction(type="drag", x=5, y=6, delay=250),
        ])

    def test_accepts_empty_sequence_and_tuple(self):
        validate_instructions([])
        validate_instructions(tuple(VALID))

    def test_button_is_optional_for_clicks(self):
        validate_instructions([{"type": "click"}, {"type": "double-click"}])

    def test_numeric_delay_is_accepted(self):
        validate_instructions([{"type": "move", "x": 1, "y": 1, "delay": 150.5}])

    def test_is_idempotent(self):
        snapshot = [dict(item) for item in VALID]
        validate_instructions(VALID)
        validate_instructions(VALID)
        assert VALID == snapshot


class TestInvalidInput:

    @pytest.mark.parametrize("value", [{"type": "move", "x": 1, "y": 2}, "move", None, 42])
    def test_non_sequence_is_rejected(self, value):
        assert _kind(value) is ValidationErrorKind.NOT_AN_ARRAY

    def test_missing_type(self):
        with pytest.raises(InstructionValidationError) as exc_info:
            validate_instructions([{"type": "click"}, {"x": 100, "y": 200}])
        assert exc_info.value.kind is ValidationErrorKind.MISSING_TYPE
        assert exc_info.value.index == 1
        assert str(exc_info.value) == "Each instruction must have a 'type' property"

    def test_unknown_type(self):
        with pytest.raises(InstructionValidationError) as exc_info:
            validate_instructions([{"type": "hover", "x": 1, "y": 1}])
        assert exc_info.value.kind is ValidationErrorKind.UNKNOWN_TYPE
        assert exc_info.value.instruction_type == "hover"
        assert str(exc_info.value) == "Unknown instruction type: hover"

    @pytest.mark.parametrize("instruction", [
        {"type": "move", "x": 100},
        {"type": "drag", "y": 200},
        {"type": "move", "x": "100", "y": 200},
        {"type": "drag", "x": True, "y": 2},
    ])
    def test_missing_coordinates(self, instruction):
        with pytest.raises(InstructionValidationError) as exc_info:
            validate_instructions([instruction])
        assert exc_info.value.kind is ValidationErrorKind.MISSING_COORDINATES
        assert str(exc_info.value) == f"{instruction['type']} instruction must have 'x' and 'y' coordinates"

    def test_invalid_button(self):
        with pytest.raises(InstructionValidationError) as exc_info:
            validate_instructions([{"type": "click", "button": "middle"}])
        assert exc_info.value.kind is ValidationErrorKind.INVALID_BUTTON
        assert str(exc_info.value) == "click instruction has invalid 'button' property"

    def test_invalid_delay(self):
        assert _kind([{"type": "move", "x": 100, "y": 200, "delay": "200ms"}]) is ValidationErrorKind.INVALID_DELAY

    def test_stops_at_first_violation(self):
        instructions = [{"type": "hover"}, {"x": 1}]
        assert _kind(instructions) is ValidationErrorKind.UNKNOWN_TYPE
