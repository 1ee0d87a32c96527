"""
Cursor Operator - HTTP server

Exposes screen information, screen capture, single cursor actions and the
pair-programming agent loop over a small JSON API.
"""

import logging
import time

import anthropic
from flask import Flask, jsonify, request

from config import Config
from controller import CursorController, ScreenCapture, UnknownActionError
from cursor_agent import CursorAgent, InstructionValidationError, validate_instructions

logger = logging.getLogger(__name__)

CURSOR_ACTIONS = ("move", "click", "double-click", "drag")
REGION_ARGS = ("x", "y", "width", "height")


def _position(pos) -> dict:
    return {"x": pos.x, "y": pos.y}


def create_app(
    config: Config,
    agent: CursorAgent = None,
    controller: CursorController = None,
    screen_capture: ScreenCapture = None,
) -> Flask:
    """Build the Flask app around one controller, capture and agent."""
    controller = controller or CursorController(action_delay=config.action_delay)
    screen_capture = screen_capture or ScreenCapture()
    agent = agent or CursorAgent(
        config.agent_settings(),
        screen=controller,
        capture_screenshot=screen_capture.capture_base64,
    )

    app = Flask(__name__)
    app.config["CURSOR_CONTROLLER"] = controller
    app.config["CURSOR_AGENT"] = agent

    @app.route("/health", methods=["GET"])
    def health():
        return jsonify({"status": "ok"})

    @app.route("/screen-info", methods=["GET"])
    def screen_info():
        logger.info("Received request for screen info")
        try:
            size = controller.get_screen_size()
            cursor = controller.get_position()
        except Exception as e:
            logger.error(f"Error getting screen info: {e}", exc_info=True)
            return jsonify({"error": str(e)}), 500
        logger.info(f"Screen {size.width}x{size.height}, cursor at ({cursor.x}, {cursor.y})")
        return jsonify({
            "screen": {"width": size.width, "height": size.height},
            "cursor": _position(cursor),
        })

    @app.route("/screen-capture", methods=["GET"])
    def screen_capture_route():
        logger.info("Received request for screen capture")
        region_args = [request.args.get(k) for k in REGION_ARGS]
        region = None
        if any(v is not None for v in region_args):
            try:
                region = tuple(int(v) for v in region_args)
            except (TypeError, ValueError):
                return jsonify({"error": "Region capture needs integer x, y, width and height"}), 400
            if region[2] <= 0 or region[3] <= 0:
                return jsonify({"error": "Region width and height must be positive"}), 400
        try:
            capture = screen_capture.capture_base64(region)
        except Exception as e:
            logger.error(f"Error capturing screen: {e}", exc_info=True)
            return jsonify({"error": str(e)}), 500
        logger.info(f"Screen captured successfully ({len(capture)} chars)")
        return jsonify({"screenCapture": capture})

    @app.route("/cursor-action", methods=["POST"])
    def cursor_action():
        body = request.get_json(silent=True) or {}
        action = body.get("action")
        params = body.get("params") or {}
        logger.info(f"Received cursor action request: {action} {params}")

        if action not in CURSOR_ACTIONS:
            logger.warning(f"Invalid action received: {action}")
            return jsonify({"error": "Invalid action"}), 400
        if action in ("move", "drag") and ("x" not in params or "y" not in params):
            return jsonify({"error": f"{action} requires 'x' and 'y'"}), 400

        instruction = {"type": action, **{k: params[k] for k in ("x", "y", "button") if k in params}}
        try:
            validate_instructions([instruction])
        except InstructionValidationError as e:
            logger.warning(f"Rejected cursor action ({e.kind.value}): {e}")
            return jsonify({"error": str(e), "kind": e.kind.value}), 400

        try:
            controller.execute_all([instruction])
            new_position = controller.get_position()
        except UnknownActionError as e:
            return jsonify({"error": str(e)}), 400
        except Exception as e:
            logger.error(f"Error executing cursor action '{action}': {e}", exc_info=True)
            return jsonify({"error": str(e)}), 500

        logger.info(f"Cursor action '{action}' completed, cursor at {tuple(new_position)}")
        return jsonify({"success": True, "newPosition": _position(new_position)})

    @app.route("/pair-program", methods=["POST"])
    def pair_program():
        body = request.get_json(silent=True) or {}
        screenshot = body.get("screenCapture")
        context = body.get("context") or {}
        goal = (body.get("goal") or "").strip()

        if not screenshot:
            return jsonify({"error": "screenCapture is required"}), 400
        if not goal:
            return jsonify({"error": "goal must be a non-empty string"}), 400

        logger.info(f"Received pair programming request — goal: {goal[:80]}")
        logger.debug(f"Screen capture size: {len(screenshot)} chars, context: {context}")

        start = time.monotonic()
        try:
            instructions = agent.run(screenshot, context, goal)
            logger.info(
                f"Received {len(instructions)} instructions in "
                f"{(time.monotonic() - start) * 1000:.0f}ms"
            )
            performed = controller.execute_all(instructions)
            final_position = controller.get_position()
        except InstructionValidationError as e:
            logger.error(f"Agent produced invalid instructions ({e.kind.value}): {e}")
            return jsonify({"error": str(e), "kind": e.kind.value}), 500
        except anthropic.APIError as e:
            logger.error(f"Remote engine call failed: {e}", exc_info=True)
            return jsonify({"error": str(e)}), 502
        except Exception as e:
            logger.error(f"Error during pair programming: {e}", exc_info=True)
            return jsonify({"error": str(e)}), 500

        logger.info(f"Pair programming completed: {performed} actions, cursor at {tuple(final_position)}")
        return jsonify({
            "success": True,
            "actionsPerformed": performed,
            "instructions": [i.to_dict() for i in instructions],
            "finalPosition": _position(final_position),
        })

    return app


def run_server(config: Config) -> None:
    """Serve in the foreground until interrupted."""
    app = create_app(config)
    size = app.config["CURSOR_CONTROLLER"].get_screen_size()
    logger.info(f"Cursor operator server running on {config.host}:{config.port}")
    logger.info(f"Screen size: {size.width}x{size.height}")
    app.run(host=config.host, port=config.port, threaded=True)
