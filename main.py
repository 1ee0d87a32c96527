"""
Main entry point — starts the server, the interactive client, or both.

`all` mode runs the Flask server on a background thread inside this process
and shuts it down when the interactive client exits.
"""

import logging
import sys
import threading

import click
from werkzeug.serving import make_server

from cli import CursorOperatorClient, log_error, log_info, log_warning
from config import create_click_options, get_api_key_status, load_config, setup_logging, validate_api_key
from server import create_app, run_server

logger = logging.getLogger(__name__)


def start_all(config) -> int:
    """Serve in the background and run the interactive client in the foreground."""
    app = create_app(config)
    http_server = make_server(config.host, config.port, app, threaded=True)
    thread = threading.Thread(target=http_server.serve_forever, name="cursor-operator-server", daemon=True)
    thread.start()
    logger.info(f"Cursor operator server running on {config.host}:{config.port}")

    client = CursorOperatorClient(config.server_url)
    try:
        if not client.wait_until_ready(timeout=5.0):
            log_error("Server failed to start within timeout period. Check logs for details.")
            return 1
        client.start_interactive({"model": config.model, "max_iterations": config.max_iterations})
        return 0
    finally:
        log_info("Shutting down server...")
        http_server.shutdown()
        thread.join(timeout=5.0)


@click.command()
@create_click_options()
@click.option(
    '--mode',
    type=click.Choice(['all', 'server', 'client']),
    default='all',
    help='Run the server, the interactive client, or both (default: all)',
)
def main(env_file, api_key, model, max_iterations, port, debug, mode):
    """Cursor Operator — let Claude drive your cursor while you pair program."""
    config = load_config(
        env_file=env_file,
        api_key=api_key,
        model=model,
        max_iterations=max_iterations,
        port=port,
        debug=debug,
    )
    setup_logging(config.effective_log_level)

    if mode != 'client' and not validate_api_key(config):
        log_warning(f"API key not configured: {get_api_key_status(config)}")
        log_info("Set ANTHROPIC_API_KEY in .env or use --api-key flag")

    if mode == 'server':
        run_server(config)
    elif mode == 'client':
        CursorOperatorClient(config.server_url).start_interactive(
            {"model": config.model, "max_iterations": config.max_iterations})
    else:
        sys.exit(start_all(config))


if __name__ == "__main__":
    main()
