"""
Cursor Operator Example - Plan Only

This example asks Claude for cursor instructions for the current screen and
prints them without moving the cursor.

Usage:
    python examples/plan_only.py "Click the Run button in the toolbar"
"""

import json
import sys
from pathlib import Path

# Add parent directory to path to import the project modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from config import load_config, setup_logging
from controller import CursorController, ScreenCapture
from cursor_agent import CursorAgent


def main():
    """Print the instructions Claude would perform for a goal."""

    config = load_config()
    setup_logging(config.effective_log_level)

    controller = CursorController(action_delay=config.action_delay)
    agent = CursorAgent(config.agent_settings(), screen=controller)

    goal = sys.argv[1] if len(sys.argv) > 1 else "Move the cursor to the centre of the screen"
    context = {"workType": "example script", "environment": sys.platform}

    print(f"Goal: {goal}")
    print("-" * 40)

    screenshot = ScreenCapture().capture_base64()
    instructions = agent.run(screenshot, context, goal)

    for instruction in instructions:
        print(json.dumps(instruction.to_dict()))

    print("-" * 40)
    print(f"{len(instructions)} instruction(s), none executed")

    return instructions


if __name__ == "__main__":
    main()
