"""
Cursor Agent - Turns a programming goal plus a screenshot into cursor instructions

Core architecture: bounded tool-use loop against Claude's computer-use capability

Key design decisions:
- The remote engine never drives the mouse directly; every tool-use request is
  translated into a normalized CursorInstruction and handed back to the caller
- The loop is capped at 10 remote calls regardless of engine behaviour
- The original screenshot is echoed back as each tool result (no mid-loop
  recapture unless explicitly enabled)
- All settings arrive through AgentSettings; there is no module-level client
"""

import base64
import json
import logging
import math
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Optional, Union

import anthropic

logger = logging.getLogger(__name__)


# ============================================================================
# Constants
# ============================================================================

MAX_ITERATIONS = 10                     # hard ceiling on remote calls per run
COMPUTER_TOOL_NAME = "computer"
COMPUTER_TOOL_TYPE = "computer_20250124"
COMPUTER_USE_BETA = "computer-use-2025-01-24"

INSTRUCTION_TYPES = ("move", "click", "double-click", "drag")
POSITIONAL_TYPES = ("move", "drag")
CLICK_TYPES = ("click", "double-click")
VALID_BUTTONS = ("left", "right")

SYSTEM_PROMPT = """You are a cursor control assistant that helps with pair programming.
You are given a screenshot of a user's screen, context about what they're working on, and their goal.
Your task is to provide a series of precise cursor actions using the Computer Use tool to help achieve that goal.

Analyze the screen carefully and determine the most effective sequence of cursor actions.
Use mouse movements, clicks, and drags to help the user with their programming task."""


# ============================================================================
# Data Classes
# ============================================================================

@dataclass(frozen=True)
class CursorInstruction:
    """One normalized cursor primitive handed to the executor."""

    type:   str
    x:      Optional[int] = None
    y:      Optional[int] = None
    button: Optional[str] = None
    delay:  Optional[float] = None   # milliseconds

    def to_dict(self) -> dict:
        return {k: v for k, v in {
            "type": self.type, "x": self.x, "y": self.y,
            "button": self.button, "delay": self.delay,
        }.items() if v is not None}


@dataclass(frozen=True)
class TextBlock:
    text: str


@dataclass(frozen=True)
class ToolUseBlock:
    id:    str
    name:  str
    input: Any


@dataclass(frozen=True)
class ToolResultBlock:
    tool_use_id: str
    content:     Any


ContentBlock = Union[TextBlock, ToolUseBlock, ToolResultBlock]


class LoopStatus(Enum):
    ITERATING   = "iterating"
    COMPLETED   = "completed"
    CAP_REACHED = "cap_reached"


@dataclass
class LoopState:
    conversation: list[dict]
    iteration:    int = 0
    instructions: list[CursorInstruction] = field(default_factory=list)
    status:       LoopStatus = LoopStatus.ITERATING


@dataclass
class AgentSettings:
    api_key:          str = ""
    model:            str = "claude-3-7-sonnet-20250219"
    max_tokens:       int = 4000
    thinking_budget:  int = 1024
    max_iterations:   int = MAX_ITERATIONS
    display_number:   int = 1
    timeout:          float = 60.0
    recapture_screen: bool = False
    beta:             str = COMPUTER_USE_BETA


# ============================================================================
# Errors
# ============================================================================

class ValidationErrorKind(Enum):
    NOT_AN_ARRAY        = "NotAnArray"
    MISSING_TYPE        = "MissingType"
    UNKNOWN_TYPE        = "UnknownType"
    MISSING_COORDINATES = "MissingCoordinates"
    INVALID_BUTTON      = "InvalidButton"
    INVALID_DELAY       = "InvalidDelay"


class InstructionValidationError(ValueError):
    """An instruction sequence does not match the accepted grammar."""

    def __init__(
        self,
        kind: ValidationErrorKind,
        message: str,
        index: Optional[int] = None,
        instruction_type: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.index = index
        self.instruction_type = instruction_type


# ============================================================================
# Helpers
# ============================================================================

def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _field(obj: Any, name: str, default: Any = None) -> Any:
    """Read a field from an SDK model or a plain dict."""
    if isinstance(obj, Mapping):
        return obj.get(name, default)
    return getattr(obj, name, default)


def _point(value: Any) -> Optional[tuple[int, int]]:
    if not isinstance(value, Mapping):
        return None
    x, y = value.get("x"), value.get("y")
    if not (_is_number(x) and _is_number(y)):
        return None
    if not (math.isfinite(x) and math.isfinite(y)):
        return None
    return round(x), round(y)


def encode_screenshot(screenshot: Union[str, bytes]) -> str:
    """Return the screenshot as a base64 string (raw PNG bytes are encoded)."""
    if isinstance(screenshot, bytes):
        return base64.b64encode(screenshot).decode("ascii")
    return screenshot


def image_block(screenshot_b64: str) -> dict:
    return {
        "type": "image",
        "source": {"type": "base64", "media_type": "image/png", "data": screenshot_b64},
    }


def parse_content_block(raw: Any) -> Optional[ContentBlock]:
    """Map one response content block onto the known variants.

    Anything else (thinking blocks, redacted thinking, future kinds) maps to
    None and is ignored by the loop.
    """
    kind = _field(raw, "type")
    if kind == "text":
        return TextBlock(text=_field(raw, "text", "") or "")
    if kind == "tool_use":
        return ToolUseBlock(
            id=_field(raw, "id", ""),
            name=_field(raw, "name", ""),
            input=_field(raw, "input"),
        )
    if kind == "tool_result":
        return ToolResultBlock(
            tool_use_id=_field(raw, "tool_use_id", ""),
            content=_field(raw, "content"),
        )
    return None


# ============================================================================
# Action Translator
# ============================================================================

def translate_action(action: Any) -> Optional[CursorInstruction]:
    """Translate one remote mouse action into a CursorInstruction.

    Returns None for any shape that is not a recognised mouse action. Never
    raises.
    """
    if not isinstance(action, Mapping) or action.get("type") != "mouse":
        logger.debug(f"Ignoring non-mouse action: {action!r}")
        return None

    sub_action = action.get("action")

    if sub_action == "move":
        point = _point(action.get("coordinates"))
        if point is None:
            logger.debug(f"Move action without usable coordinates: {action!r}")
            return None
        return CursorInstruction(type="move", x=point[0], y=point[1])

    if sub_action == "click":
        button = action.get("button")
        clicks = action.get("clicks", action.get("clickCount"))
        if button == "left" and clicks == 2:
            return CursorInstruction(type="double-click", button="left")
        return CursorInstruction(type="click", button=button)

    if sub_action == "drag":
        point = _point(action.get("end"))
        if point is None:
            logger.debug(f"Drag action without usable end point: {action!r}")
            return None
        return CursorInstruction(type="drag", x=point[0], y=point[1])

    logger.debug(f"Ignoring unknown mouse action: {sub_action!r}")
    return None


# ============================================================================
# Instruction Validator
# ============================================================================

def validate_instructions(instructions: Any) -> None:
    """Check a sequence of instructions against the accepted grammar.

    Elements may be CursorInstruction objects or mappings. Stops at the first
    violation and raises InstructionValidationError naming the rule and the
    offending element.
    """
    if isinstance(instructions, (str, bytes, Mapping)) or not isinstance(instructions, Sequence):
        raise InstructionValidationError(
            ValidationErrorKind.NOT_AN_ARRAY, "Instructions must be an array")

    for index, candidate in enumerate(instructions):
        item = candidate.to_dict() if isinstance(candidate, CursorInstruction) else candidate
        if not isinstance(item, Mapping) or not item.get("type"):
            raise InstructionValidationError(
                ValidationErrorKind.MISSING_TYPE,
                "Each instruction must have a 'type' property",
                index=index,
            )

        kind = item["type"]
        if kind not in INSTRUCTION_TYPES:
            raise InstructionValidationError(
                ValidationErrorKind.UNKNOWN_TYPE,
                f"Unknown instruction type: {kind}",
                index=index, instruction_type=kind,
            )

        if kind in POSITIONAL_TYPES:
            if not (_is_number(item.get("x")) and _is_number(item.get("y"))):
                raise InstructionValidationError(
                    ValidationErrorKind.MISSING_COORDINATES,
                    f"{kind} instruction must have 'x' and 'y' coordinates",
                    index=index, instruction_type=kind,
                )
        else:
            button = item.get("button")
            if button and button not in VALID_BUTTONS:
                raise InstructionValidationError(
                    ValidationErrorKind.INVALID_BUTTON,
                    f"{kind} instruction has invalid 'button' property",
                    index=index, instruction_type=kind,
                )

        if "delay" in item and item["delay"] is not None and not _is_number(item["delay"]):
            raise InstructionValidationError(
                ValidationErrorKind.INVALID_DELAY,
                "Delay must be a number",
                index=index, instruction_type=kind,
            )


# ============================================================================
# Agent Loop Driver
# ============================================================================

class CursorAgent:
    """Runs the computer-use exchange for one goal and returns instructions.

    Each run() owns its own LoopState, so one agent can serve concurrent
    requests; executing the returned instructions is the caller's job.
    """

    def __init__(
        self,
        settings: AgentSettings,
        screen,
        client=None,
        capture_screenshot: Optional[Callable[[], str]] = None,
    ):
        if settings.max_iterations < 1 or settings.max_iterations > MAX_ITERATIONS:
            raise ValueError(f"max_iterations must be between 1 and {MAX_ITERATIONS}")
        self.settings = settings
        self.screen = screen
        self.capture_screenshot = capture_screenshot
        self.client = client or anthropic.Anthropic(
            api_key=settings.api_key, timeout=settings.timeout)
        logger.info(f"CursorAgent initialized — model: {settings.model}")

    # ------------------------------------------------------------------ #
    #  Request building                                                    #
    # ------------------------------------------------------------------ #

    def build_tools(self) -> list[dict]:
        width, height = self.screen.get_screen_size()
        return [{
            "type": COMPUTER_TOOL_TYPE,
            "name": COMPUTER_TOOL_NAME,
            "display_width_px": width,
            "display_height_px": height,
            "display_number": self.settings.display_number,
        }]

    @staticmethod
    def build_initial_turn(screenshot_b64: str, context: Any, goal: str) -> dict:
        text = (
            f"Context about what I'm working on: {json.dumps(context)}\n\n"
            f"My goal is: {goal}\n\n"
            "Please control my cursor to help me achieve this goal."
        )
        return {
            "role": "user",
            "content": [{"type": "text", "text": text}, image_block(screenshot_b64)],
        }

    def _acknowledge(self, tool_use: ToolUseBlock, screenshot_b64: str) -> dict:
        if self.settings.recapture_screen and self.capture_screenshot:
            screenshot_b64 = self.capture_screenshot()
        return {
            "type": "tool_result",
            "tool_use_id": tool_use.id,
            "content": [{"type": "text", "text": "success"}, image_block(screenshot_b64)],
        }

    def _create(self, conversation: list[dict], tools: list[dict]):
        return self.client.beta.messages.create(
            model=self.settings.model,
            max_tokens=self.settings.max_tokens,
            system=SYSTEM_PROMPT,
            messages=conversation,
            tools=tools,
            thinking={"type": "enabled", "budget_tokens": self.settings.thinking_budget},
            betas=[self.settings.beta],
        )

    # ------------------------------------------------------------------ #
    #  Loop                                                                #
    # ------------------------------------------------------------------ #

    def _step(self, state: LoopState, tools: list[dict], screenshot_b64: str) -> None:
        """One remote call plus its bookkeeping; sets state.status."""
        state.iteration += 1
        logger.info(f"Agent iteration {state.iteration}/{self.settings.max_iterations}")

        response = self._create(state.conversation, tools)
        content = list(response.content)
        state.conversation.append({"role": "assistant", "content": content})

        acknowledgements = []
        for raw in content:
            block = parse_content_block(raw)
            if not isinstance(block, ToolUseBlock) or block.name != COMPUTER_TOOL_NAME:
                continue
            instruction = translate_action(_field(block.input, "action"))
            if instruction is not None:
                state.instructions.append(instruction)
                logger.debug(f"Tool use {block.id} → {instruction.to_dict()}")
            else:
                logger.info(f"Tool use {block.id} produced no instruction")
            acknowledgements.append(self._acknowledge(block, screenshot_b64))

        # Single exit decision per iteration
        if not acknowledgements:
            state.status = LoopStatus.COMPLETED
        elif state.iteration >= self.settings.max_iterations:
            state.status = LoopStatus.CAP_REACHED
        else:
            state.conversation.append({"role": "user", "content": acknowledgements})

    def run(self, screenshot: Union[str, bytes], context: Any, goal: str) -> list[CursorInstruction]:
        """Run the agent loop and return the validated instruction sequence.

        Remote errors propagate immediately with no partial result.
        """
        screenshot_b64 = encode_screenshot(screenshot)
        tools = self.build_tools()
        state = LoopState(conversation=[self.build_initial_turn(screenshot_b64, context, goal)])
        logger.info(f"Starting agent loop — goal: {goal[:60]}")

        while state.status is LoopStatus.ITERATING:
            self._step(state, tools, screenshot_b64)

        if state.status is LoopStatus.CAP_REACHED:
            logger.warning(f"Iteration cap ({self.settings.max_iterations}) reached")

        validate_instructions(state.instructions)
        logger.info(
            f"Agent loop finished ({state.status.value}) after {state.iteration} call(s) "
            f"with {len(state.instructions)} instruction(s)"
        )
        return list(state.instructions)
