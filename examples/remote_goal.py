"""
Cursor Operator Example - Remote Goal

This example sends one goal to a running cursor operator server and lets it
drive the cursor.

Usage:
    python main.py --mode server          # in another terminal
    python examples/remote_goal.py

Note:
    Keep an editor window visible before running.
"""

import sys
from pathlib import Path

# Add parent directory to path to import the project modules
sys.path.insert(0, str(Path(__file__).parent.parent))

from cli import CursorOperatorClient
from config import load_config


def main():
    """Ask Claude to open the editor's file explorer."""

    config = load_config()
    client = CursorOperatorClient(config.server_url)

    goal = "Open the file explorer panel in my editor"

    print(f"Goal: {goal}")
    print("-" * 40)

    result = client.run_goal(goal, work_type="Python script")

    print("-" * 40)
    print(f"Actions performed: {result['actionsPerformed']}")
    print(f"Final position: {result['finalPosition']}")

    return result


if __name__ == "__main__":
    main()
