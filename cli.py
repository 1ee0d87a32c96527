"""
Cursor Operator - Command Line Interface Module

Provides the interactive terminal client:
- Colored output for different log levels
- Spinner while the agent is working
- HTTP client for the cursor operator server
"""

import platform
import time
from datetime import datetime
from typing import Optional, Dict, Any

import requests
from rich.console import Console
from rich.panel import Panel
from rich.progress import Progress, SpinnerColumn, TextColumn, BarColumn, TaskProgressColumn, TaskID
from rich.prompt import Prompt


# Initialize console with emoji support
console = Console()


# ============================================================================
# Logging Functions
# ============================================================================

def log_info(message: str, title: str = "INFO") -> None:
    """Log an informational message with blue styling."""
    timestamp = datetime.now().strftime("%H:%M:%S")
    console.print(f"[dim]{timestamp}[/dim] [bold blue][{title}][/bold blue] {message}")


def log_success(message: str, title: str = "SUCCESS") -> None:
    """Log a success message with green styling."""
    timestamp = datetime.now().strftime("%H:%M:%S")
    console.print(f"[dim]{timestamp}[/dim] [bold green][{title}][/bold green] {message}")


def log_warning(message: str, title: str = "WARNING") -> None:
    """Log a warning message with yellow styling."""
    timestamp = datetime.now().strftime("%H:%M:%S")
    console.print(f"[dim]{timestamp}[/dim] [bold yellow][{title}][/bold yellow] {message}")


def log_error(message: str, title: str = "ERROR") -> None:
    """Log an error message with red styling."""
    timestamp = datetime.now().strftime("%H:%M:%S")
    console.print(f"[dim]{timestamp}[/dim] [bold red][{title}][/bold red] {message}")


# ============================================================================
# Panel Displays
# ============================================================================

def show_welcome_panel() -> None:
    """Display the welcome panel with project information."""
    welcome_text = """[bold blue]Cursor Operator[/bold blue] - Pair programming with Claude at the wheel

[dim]Describe a goal and Claude moves, clicks and drags your cursor to reach it[/dim]

[bold]Quick Commands:[/bold]
  [green]help[/green]     - Show this help message
  [green]config[/green]   - Show the server connection
  [green]quit/exit[/green] - Exit the application

[bold]Example Goals:[/bold]
  - "Click the Run button in the editor toolbar"
  - "Open the file explorer panel"
  - "Drag the terminal divider up to give it more room"
"""
    console.print(Panel(
        welcome_text,
        title="[bold blue]Welcome to Cursor Operator[/bold blue]",
        border_style="blue",
        padding=(1, 2),
    ))
    console.print()


def show_safety_warning() -> None:
    """Display important safety warnings."""
    warning_text = """[yellow]SAFETY REMINDER:[/yellow]

[bold]Always watch the cursor while a goal is running![/bold]

- Claude controls your real mouse
- Keep unsaved work out of reach of stray clicks
- Stay ready to interrupt with Ctrl+C

[dim]PyAutoGUI failsafe: Move mouse to screen corner to stop[/dim]
"""
    console.print(Panel(
        warning_text,
        title="[bold yellow]Safety Notice[/bold yellow]",
        border_style="yellow",
        padding=(1, 2),
    ))
    console.print()


def show_config_panel(config: Dict[str, Any]) -> None:
    """Display current configuration."""
    config_text = f"""[bold]Server:[/bold] {config.get('server_url', 'N/A')}
[bold]Model:[/bold] {config.get('model', 'N/A')}
[bold]Max Iterations:[/bold] {config.get('max_iterations', 10)}
"""
    console.print(Panel(
        config_text,
        title="[bold]Current Configuration[/bold]",
        border_style="green",
        padding=(0, 1),
    ))


def show_session_summary(goals: int, actions: int, failed: int) -> None:
    """Display session statistics."""
    summary_text = f"""[bold]Goals Attempted:[/bold] {goals}
[green]Cursor Actions:[/green] {actions}
[red]Failed Goals:[/red] {failed}""" if goals > 0 else "[dim]No goals attempted[/dim]"

    console.print(Panel(
        summary_text,
        title="[bold]Session Summary[/bold]",
        border_style="green",
    ))


# ============================================================================
# Progress Indicators
# ============================================================================

class TaskProgress:
    """Context manager for displaying task progress with spinner."""

    def __init__(self, description: str = "Processing"):
        self.description = description
        self.progress: Optional[Progress] = None
        self.task_id: Optional[TaskID] = None

    def __enter__(self):
        self.progress = Progress(
            SpinnerColumn(spinner_name="dots"),
            TextColumn("[bold blue]{task.description}"),
            BarColumn(bar_width=40),
            TaskProgressColumn(),
            console=console,
        )
        self.task_id = self.progress.add_task(self.description, total=None)
        self.progress.start()
        return self

    def __exit__(self, *args):
        if self.progress and self.task_id is not None:
            self.progress.update(self.task_id, completed=100)
            self.progress.stop()


# ============================================================================
# User Input Functions
# ============================================================================

class Command:
    """Built-in commands for the CLI."""
    HELP = ['help', 'h', '?']
    QUIT = ['quit', 'exit', 'q']
    CLEAR = ['clear', 'cls']
    CONFIG = ['config', 'cfg']

    @classmethod
    def is_command(cls, text: str) -> bool:
        """Check if input is a built-in command."""
        return cls.get_command_type(text) is not None

    @classmethod
    def get_command_type(cls, text: str) -> Optional[str]:
        """Get the command type from input."""
        text_lower = text.strip().lower()
        if text_lower in cls.HELP:
            return 'help'
        elif text_lower in cls.QUIT:
            return 'quit'
        elif text_lower in cls.CLEAR:
            return 'clear'
        elif text_lower in cls.CONFIG:
            return 'config'
        return None


def get_user_instruction(prompt_text: str = "What programming task would you like help with?") -> Optional[str]:
    """Get user input with styled prompt; None on EOF or Ctrl+C."""
    try:
        instruction = Prompt.ask(
            f"\n[bold green]{prompt_text}[/bold green]",
            default="",
        )
        return instruction.strip() if instruction else None
    except (KeyboardInterrupt, EOFError):
        return None


def show_help() -> None:
    """Display help information."""
    help_text = """[bold]Available Commands:[/bold]

[green]help, h, ?[/green]       - Show this help message
[green]quit, exit, q[/green]    - Exit the application
[green]clear, cls[/green]       - Clear screen
[green]config, cfg[/green]      - Show current configuration

[bold]How it works:[/bold]

1. Type a goal, e.g. [green]"Click the Run button"[/green]
2. Describe what you are working on, e.g. [green]"React component"[/green]
3. The screen is captured and sent to Claude with your goal
4. The cursor actions Claude asks for are performed on your screen

[dim]Tip: Name the exact button, tab or panel you want Claude to use.[/dim]
"""
    console.print(Panel(
        help_text,
        title="[bold blue]Help[/bold blue]",
        border_style="blue",
        padding=(1, 2),
    ))


# ============================================================================
# HTTP Client
# ============================================================================

class ClientError(RuntimeError):
    """The cursor operator server returned an error or was unreachable."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class CursorOperatorClient:
    """Talks to the cursor operator server over HTTP."""

    def __init__(self, server_url: str = "http://localhost:3000", timeout: float = 30.0,
                 session: Optional[requests.Session] = None):
        self.server_url = server_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.goals = 0
        self.actions = 0
        self.failed = 0

    def _request(self, method: str, path: str, **kwargs) -> dict:
        try:
            resp = self.session.request(
                method, f"{self.server_url}{path}", timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise ClientError(f"Cannot reach server at {self.server_url}: {e}") from e
        if not resp.ok:
            try:
                message = resp.json().get("error", resp.text)
            except ValueError:
                message = resp.text
            raise ClientError(message or resp.reason, status_code=resp.status_code)
        return resp.json()

    def get_screen_info(self) -> dict:
        return self._request("GET", "/screen-info")

    def capture_screen(self) -> str:
        return self._request("GET", "/screen-capture")["screenCapture"]

    def execute_cursor_action(self, action: str, params: Optional[dict] = None) -> dict:
        return self._request("POST", "/cursor-action", json={"action": action, "params": params or {}})

    def pair_program(self, screen_capture: str, context: dict, goal: str) -> dict:
        return self._request("POST", "/pair-program", json={
            "screenCapture": screen_capture,
            "context": context,
            "goal": goal,
        })

    def is_ready(self) -> bool:
        try:
            self._request("GET", "/health")
            return True
        except ClientError:
            return False

    def wait_until_ready(self, timeout: float = 5.0, interval: float = 0.2) -> bool:
        """Poll /health until the server answers or timeout expires."""
        deadline = time.monotonic() + timeout
        while time.monotonic() < deadline:
            if self.is_ready():
                return True
            time.sleep(interval)
        return self.is_ready()

    # ------------------------------------------------------------------ #
    #  Interactive session                                                 #
    # ------------------------------------------------------------------ #

    def run_goal(self, goal: str, work_type: str) -> dict:
        """Capture the screen and run one goal through the server."""
        context = {
            "workType": work_type,
            "environment": platform.system().lower(),
            "timestamp": datetime.now().isoformat(),
        }
        log_info("Capturing screen...")
        capture = self.capture_screen()
        with TaskProgress("Processing with Claude..."):
            return self.pair_program(capture, context, goal)

    def start_interactive(self, config: Optional[Dict[str, Any]] = None) -> None:
        show_welcome_panel()
        show_safety_warning()

        try:
            info = self.get_screen_info()
        except ClientError as e:
            log_error(f"Failed to start interactive session: {e}")
            return
        screen, cursor = info["screen"], info["cursor"]
        log_info(f"Screen size: {screen['width']}x{screen['height']}")
        log_info(f"Current cursor position: ({cursor['x']}, {cursor['y']})")

        while True:
            goal = get_user_instruction()
            if goal is None:
                break

            if Command.is_command(goal):
                cmd = Command.get_command_type(goal)
                if cmd == "quit":
                    break
                elif cmd == "help":
                    show_help()
                elif cmd == "clear":
                    console.clear()
                elif cmd == "config":
                    show_config_panel({"server_url": self.server_url, **(config or {})})
                continue

            work_type = get_user_instruction(
                'Briefly describe what you are working on (e.g., "React component", "Python script")'
            ) or ""

            self.goals += 1
            try:
                result = self.run_goal(goal, work_type)
            except ClientError as e:
                self.failed += 1
                log_error(f"Error: {e}")
                continue

            self.actions += result.get("actionsPerformed", 0)
            final = result.get("finalPosition", {})
            console.print()
            log_success(f"Completed {result.get('actionsPerformed', 0)} cursor actions")
            log_info(f"Final cursor position: ({final.get('x')}, {final.get('y')})")

        console.print()
        show_session_summary(self.goals, self.actions, self.failed)
        console.print("[bold blue]Goodbye![/bold blue]")
