"""
Cursor Operator - Configuration Module

Centralized configuration management with support for:
- Environment variables via .env file
- Command-line arguments via click
- Default values and validation
"""

import logging
import os
from dataclasses import dataclass
from typing import Optional
from pathlib import Path

from dotenv import load_dotenv
import click

from cursor_agent import AgentSettings, MAX_ITERATIONS


# Default configuration values
DEFAULTS = {
    'model': 'claude-3-7-sonnet-20250219',
    'max_tokens': 4000,
    'thinking_budget': 1024,
    'max_iterations': MAX_ITERATIONS,
    'timeout': 60,
    'host': '127.0.0.1',
    'port': 3000,
    'action_delay': 0.3,
    'log_level': 'INFO',
}

LOG_LEVELS = ('DEBUG', 'INFO', 'WARNING', 'ERROR')
LOG_FORMAT = '%(asctime)s - %(levelname)s - %(name)s - %(message)s'


@dataclass
class Config:
    """Configuration container for Cursor Operator."""

    # API Configuration
    api_key: str = ""
    model: str = DEFAULTS['model']
    max_tokens: int = DEFAULTS['max_tokens']
    thinking_budget: int = DEFAULTS['thinking_budget']

    # Agent Configuration
    max_iterations: int = DEFAULTS['max_iterations']
    timeout: int = DEFAULTS['timeout']
    recapture_screen: bool = False

    # Server Configuration
    host: str = DEFAULTS['host']
    port: int = DEFAULTS['port']
    server_url: str = ""

    # Action Configuration
    action_delay: float = DEFAULTS['action_delay']

    # Logging
    log_level: str = DEFAULTS['log_level']
    debug: bool = False

    # Path configuration
    env_file: str = ".env"

    def __post_init__(self):
        """Validate configuration after initialization."""
        if not self.server_url:
            self.server_url = f"http://localhost:{self.port}"
        self.log_level = self.log_level.upper()
        self._validate()

    def _validate(self):
        """Validate configuration values."""
        if self.max_iterations < 1 or self.max_iterations > MAX_ITERATIONS:
            raise ValueError(f"max_iterations must be between 1 and {MAX_ITERATIONS}")

        if self.thinking_budget < 1024:
            raise ValueError("thinking_budget must be at least 1024")

        if self.max_tokens <= self.thinking_budget or self.max_tokens > 64000:
            raise ValueError("max_tokens must be greater than thinking_budget and at most 64000")

        if self.timeout <= 0:
            raise ValueError("timeout must be positive")

        if self.port < 1 or self.port > 65535:
            raise ValueError("port must be between 1 and 65535")

        if self.action_delay < 0:
            raise ValueError("action_delay must not be negative")

        if self.log_level not in LOG_LEVELS:
            raise ValueError(f"log_level must be one of {', '.join(LOG_LEVELS)}")

    @property
    def effective_log_level(self) -> str:
        return 'DEBUG' if self.debug else self.log_level

    def agent_settings(self) -> AgentSettings:
        """Settings handed to the agent loop."""
        return AgentSettings(
            api_key=self.api_key,
            model=self.model,
            max_tokens=self.max_tokens,
            thinking_budget=self.thinking_budget,
            max_iterations=self.max_iterations,
            timeout=float(self.timeout),
            recapture_screen=self.recapture_screen,
        )

    def to_dict(self) -> dict:
        """Convert configuration to dictionary."""
        return {
            'api_key': self.api_key,
            'model': self.model,
            'max_tokens': self.max_tokens,
            'thinking_budget': self.thinking_budget,
            'max_iterations': self.max_iterations,
            'timeout': self.timeout,
            'recapture_screen': self.recapture_screen,
            'host': self.host,
            'port': self.port,
            'server_url': self.server_url,
            'action_delay': self.action_delay,
            'log_level': self.log_level,
            'debug': self.debug,
        }

    def get(self, key: str, default=None):
        """Get configuration value with default."""
        return self.to_dict().get(key, default)


def _env_flag(name: str) -> bool:
    return os.getenv(name, 'false').lower() == 'true'


class ConfigLoader:
    """Load configuration from various sources."""

    def __init__(self, env_file: Optional[str] = None):
        """Initialize config loader.

        Args:
            env_file: Path to .env file. If None, searches default locations.
        """
        self.env_file = env_file
        self._load_env()

    def _load_env(self):
        """Load environment variables from .env file."""
        if self.env_file:
            env_path = Path(self.env_file)
            if env_path.exists():
                load_dotenv(env_path)
        else:
            # Search for .env in current directory and parent directories
            load_dotenv()

    def load(self) -> Config:
        """Load configuration from environment variables.

        Returns:
            Config object with loaded values.
        """
        return Config(
            api_key=os.getenv('ANTHROPIC_API_KEY', ''),
            model=os.getenv('MODEL_NAME', DEFAULTS['model']),
            max_tokens=int(os.getenv('MAX_TOKENS', DEFAULTS['max_tokens'])),
            thinking_budget=int(os.getenv('THINKING_BUDGET', DEFAULTS['thinking_budget'])),
            max_iterations=int(os.getenv('MAX_ITERATIONS', DEFAULTS['max_iterations'])),
            timeout=int(os.getenv('TIMEOUT', DEFAULTS['timeout'])),
            recapture_screen=_env_flag('RECAPTURE_SCREEN'),
            host=os.getenv('HOST', DEFAULTS['host']),
            port=int(os.getenv('PORT', DEFAULTS['port'])),
            server_url=os.getenv('SERVER_URL', ''),
            action_delay=float(os.getenv('ACTION_DELAY', DEFAULTS['action_delay'])),
            log_level=os.getenv('LOG_LEVEL', DEFAULTS['log_level']),
            debug=_env_flag('DEBUG'),
            env_file=self.env_file or ".env",
        )


def setup_logging(level: str = DEFAULTS['log_level']) -> None:
    """Configure root logging for the process."""
    logging.basicConfig(level=getattr(logging, level.upper(), logging.INFO), format=LOG_FORMAT)


def create_click_options():
    """Create click decorator for CLI options.

    Returns:
        Decorator function for click options.
    """
    def decorator(f):
        options = [
            click.option(
                '--env-file', '-e',
                default=None,
                help='Path to .env file',
            ),
            click.option(
                '--api-key', '-k',
                envvar='ANTHROPIC_API_KEY',
                help='Anthropic API key (env: ANTHROPIC_API_KEY)',
            ),
            click.option(
                '--model', '-m',
                envvar='MODEL_NAME',
                default=None,
                help=f'Model name (env: MODEL_NAME, default: {DEFAULTS["model"]})',
            ),
            click.option(
                '--max-iterations', '-i',
                type=click.IntRange(1, MAX_ITERATIONS),
                default=None,
                help=f'Maximum remote calls per goal (default: {DEFAULTS["max_iterations"]})',
            ),
            click.option(
                '--port', '-p',
                type=int,
                default=None,
                help=f'HTTP server port (env: PORT, default: {DEFAULTS["port"]})',
            ),
            click.option(
                '--debug', '-d',
                is_flag=True,
                default=False,
                help='Enable debug logging',
            ),
        ]
        for option in reversed(options):
            f = option(f)
        return f
    return decorator


def load_config(
    env_file: Optional[str] = None,
    api_key: Optional[str] = None,
    model: Optional[str] = None,
    max_iterations: Optional[int] = None,
    port: Optional[int] = None,
    debug: bool = False,
) -> Config:
    """Load configuration with optional overrides.

    Args:
        env_file: Path to .env file.
        api_key: Override API key.
        model: Override model name.
        max_iterations: Override the iteration cap (at most 10).
        port: Override server port; the client URL follows unless SERVER_URL is set.
        debug: Enable debug mode.

    Returns:
        Config object with loaded values.
    """
    loader = ConfigLoader(env_file)
    config = loader.load()

    # Apply command-line overrides
    if api_key:
        config.api_key = api_key
    if model:
        config.model = model
    if max_iterations is not None:
        config.max_iterations = max_iterations
    if port is not None:
        if config.server_url == f"http://localhost:{config.port}":
            config.server_url = f"http://localhost:{port}"
        config.port = port
    if debug:
        config.debug = debug

    config._validate()
    return config


def validate_api_key(config: Config) -> bool:
    """Validate that API key is configured.

    Args:
        config: Configuration to validate.

    Returns:
        True if API key is configured, False otherwise.
    """
    if not config.api_key or config.api_key.startswith('sk-ant-your-'):
        return False
    return True


def get_api_key_status(config: Config) -> str:
    """Get API key status message.

    Args:
        config: Configuration to check.

    Returns:
        Status message about API key configuration.
    """
    if not config.api_key:
        return "API key not set"
    elif config.api_key.startswith('sk-ant-your-'):
        return "API key not configured (using placeholder)"
    elif len(config.api_key) < 20:
        return "API key appears invalid (too short)"
    else:
        return f"API key configured ({config.api_key[:10]}...)"


# ============================================================================
# Click CLI Commands
# ============================================================================

@click.group()
def cli():
    """Cursor Operator Configuration CLI."""
    pass


@cli.command()
@click.option('--env-file', '-e', default='.env', help='Path to .env file')
def show(env_file: str):
    """Show current configuration."""
    from rich.console import Console
    from rich.table import Table

    console = Console()
    config = load_config(env_file=env_file)

    table = Table(title="Cursor Operator Configuration", border_style="blue")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Value", style="green")

    for key, value in config.to_dict().items():
        if key == 'api_key' and value:
            value = f"{value[:10]}..." if len(value) > 10 else value
        table.add_row(key, str(value))

    console.print(table)

    api_status = get_api_key_status(config)
    if validate_api_key(config):
        console.print(f"\n[green]✓[/green] {api_status}")
    else:
        console.print(f"\n[yellow]![/yellow] {api_status}")
        console.print("\n[dim]Set ANTHROPIC_API_KEY in your .env file or use --api-key flag[/dim]")


@cli.command()
def defaults():
    """Show default configuration values."""
    from rich.console import Console
    from rich.table import Table

    console = Console()

    table = Table(title="Default Configuration Values", border_style="blue")
    table.add_column("Setting", style="cyan", no_wrap=True)
    table.add_column("Default Value", style="green")
    table.add_column("Range", style="dim")

    defaults_info = [
        ('model', DEFAULTS['model'], ''),
        ('max_tokens', str(DEFAULTS['max_tokens']), '> thinking_budget, <= 64000'),
        ('thinking_budget', str(DEFAULTS['thinking_budget']), '>= 1024'),
        ('max_iterations', str(DEFAULTS['max_iterations']), f'1-{MAX_ITERATIONS}'),
        ('timeout', str(DEFAULTS['timeout']), '> 0'),
        ('host', DEFAULTS['host'], ''),
        ('port', str(DEFAULTS['port']), '1-65535'),
        ('action_delay', str(DEFAULTS['action_delay']), '>= 0'),
        ('log_level', DEFAULTS['log_level'], '/'.join(LOG_LEVELS)),
    ]

    for name, value, range_info in defaults_info:
        table.add_row(name, value, range_info)

    console.print(table)


@cli.command()
@click.option('--env-file', '-e', default='.env', help='Path to .env file')
def check(env_file: str):
    """Check configuration and environment."""
    from rich.console import Console
    from rich.panel import Panel

    console = Console()
    config = load_config(env_file=env_file)

    issues = []

    if not validate_api_key(config):
        issues.append("[red]✗[/red] API key not configured")
    else:
        issues.append("[green]✓[/green] API key configured")

    if config.model:
        issues.append("[green]✓[/green] Model configured")
    else:
        issues.append("[yellow]![/yellow] Model not configured")

    issues.append(f"[green]✓[/green] Server will listen on {config.host}:{config.port}")

    status_text = "\n".join(issues)

    if not any("✗" in issue for issue in issues):
        panel = Panel(
            f"[green]Configuration looks good![/green]\n\n{status_text}",
            title="Configuration Check",
            border_style="green",
        )
    else:
        panel = Panel(
            f"[yellow]Configuration issues found:[/yellow]\n\n{status_text}",
            title="Configuration Check",
            border_style="yellow",
        )

    console.print(panel)


if __name__ == "__main__":
    cli()
