"""Command-line entry point for the installer."""

from __future__ import annotations

import time
from typing import Callable, List, Optional, TypeVar

import typer

from clawsetup.config import InstallerSettings
from clawsetup.errors import ClawSetupError, ProbeExhausted
from clawsetup.installer import Installer
from clawsetup.logging_config import setup_logging
from clawsetup.merge import ChannelSettings, DesiredSettings

T = TypeVar("T")

app = typer.Typer(
    add_completion=False,
    help="Configure and supervise a local OpenClaw gateway.",
)
agents_app = typer.Typer(help="Manage named agents.")
app.add_typer(agents_app, name="agents")


def _installer(ctx: typer.Context) -> Installer:
    return ctx.obj


def _guard(action: Callable[[], T]) -> T:
    """Run an installer action, turning library failures into exit code 1."""
    try:
        return action()
    except ProbeExhausted as exc:
        typer.echo(exc.diagnostic, err=True)
        raise typer.Exit(code=1)
    except ClawSetupError as exc:
        typer.echo(f"Error: {exc}", err=True)
        raise typer.Exit(code=1)


def _parse_service_keys(values: List[str]) -> dict:
    keys = {}
    for item in values:
        name, sep, secret = item.partition("=")
        if not sep or not name:
            raise typer.BadParameter(f"expected SERVICE=SECRET, got {item!r}", param_hint="--service-key")
        keys[name] = secret
    return keys


@app.callback()
def main(ctx: typer.Context) -> None:
    """Load settings from the environment and configure logging."""
    settings = _guard(InstallerSettings.from_env)
    setup_logging(settings.log_level, settings.log_format)
    if ctx.obj is None:
        ctx.obj = Installer(settings)


@app.command()
def configure(
    ctx: typer.Context,
    provider: str = typer.Option("anthropic", help="Provider id from the catalog."),
    key: str = typer.Option(..., "--key", help="API key or token for the provider."),
    model: Optional[str] = typer.Option(None, help="Primary model; defaults to the provider's first model."),
    kind: str = typer.Option("api_key", help="Credential kind: api_key or token."),
    telegram_token: Optional[str] = typer.Option(None, help="Enable the Telegram channel with this bot token."),
    telegram_name: str = typer.Option("Main", help="Display name of the Telegram account."),
    service_key: List[str] = typer.Option([], help="Auxiliary credential as SERVICE=SECRET; repeatable."),
    reset_malformed: bool = typer.Option(False, help="Start from an empty document if the file on disk is unreadable."),
) -> None:
    """Reconcile provider, model and channel settings into openclaw.json."""
    installer = _installer(ctx)
    channel = ChannelSettings(token=telegram_token, display_name=telegram_name) if telegram_token else None
    try:
        desired = DesiredSettings.for_provider(
            provider,
            key,
            model=model,
            kind=kind,
            gateway_port=installer.settings.gateway_port,
            channel=channel,
            service_keys=_parse_service_keys(service_key),
        )
    except ValueError as exc:
        raise typer.BadParameter(str(exc), param_hint="--kind")
    except ClawSetupError as exc:
        raise typer.BadParameter(str(exc), param_hint="--provider")

    _guard(lambda: installer.configure(desired, reset_malformed=reset_malformed))
    print(f"Configuration written to {installer.settings.config_path}", flush=True)


@app.command()
def start(ctx: typer.Context) -> None:
    """Install and start the gateway, then wait until it accepts connections."""
    ready = _guard(_installer(ctx).start_gateway)
    print(f"Gateway ready on port {ready.port} (attempt {len(ready.attempts)})", flush=True)


@app.command()
def restart(ctx: typer.Context) -> None:
    """Stop, reinstall and start the gateway."""
    ready = _guard(_installer(ctx).restart_gateway)
    print(f"Gateway ready on port {ready.port} (attempt {len(ready.attempts)})", flush=True)


@app.command()
def stop(ctx: typer.Context) -> None:
    """Stop the gateway service."""
    if not _guard(_installer(ctx).stop_gateway):
        typer.echo("Gateway stop reported a failure", err=True)
        raise typer.Exit(code=1)
    print("Gateway stopped", flush=True)


@app.command()
def approve(
    ctx: typer.Context,
    code: str = typer.Argument(..., help="Pairing code shown by the bot."),
    channel: str = typer.Option("telegram", help="Channel the code belongs to."),
) -> None:
    """Approve a pending pairing request."""
    result = _guard(lambda: _installer(ctx).approve_pairing(code, channel))
    print(f"Pairing approved on {result.channel}", flush=True)


@app.command()
def skill(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Skill plugin: search, shell, vision or memory."),
    enable: bool = typer.Option(True, "--enable/--disable", help="Switch the skill on or off."),
) -> None:
    """Enable or disable a built-in skill plugin."""
    _guard(lambda: _installer(ctx).set_skill(name, enable))
    print(f"Skill {name} {'enabled' if enable else 'disabled'}", flush=True)


@app.command("remove-profile")
def remove_profile(
    ctx: typer.Context,
    provider: str = typer.Argument(..., help="Provider id or full profile id, e.g. openai or openai:default."),
) -> None:
    """Remove a stored provider credential."""
    _guard(lambda: _installer(ctx).remove_profile(provider))
    print(f"Removed profile {provider}", flush=True)


@agents_app.command("add")
def agents_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent name."),
) -> None:
    """Add an agent that starts with the default workspace and model."""
    _guard(lambda: _installer(ctx).add_agent(name))
    print(f"Agent {name} added", flush=True)


@agents_app.command("remove")
def agents_remove(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent name."),
) -> None:
    """Remove a named agent."""
    _guard(lambda: _installer(ctx).remove_agent(name))
    print(f"Agent {name} removed", flush=True)


@agents_app.command("workspace")
def agents_workspace(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Agent name."),
    path: str = typer.Argument(..., help="Workspace directory for the agent."),
) -> None:
    """Set the workspace directory of a named agent."""
    _guard(lambda: _installer(ctx).set_agent_workspace(name, path))
    print(f"Agent {name} workspace set to {path}", flush=True)


@app.command()
def logs(ctx: typer.Context) -> None:
    """Follow the gateway log until interrupted."""
    handle = _installer(ctx).stream_logs(lambda line: print(line, flush=True))
    try:
        while handle.is_alive():
            time.sleep(1)
    except KeyboardInterrupt:
        handle.stop()


@app.command("dashboard-url")
def dashboard_url(ctx: typer.Context) -> None:
    """Print the dashboard URL including the gateway token."""
    print(_guard(_installer(ctx).dashboard_url), flush=True)


@app.command()
def version(ctx: typer.Context) -> None:
    """Print the installed service CLI version."""
    found = _installer(ctx).service_version()
    if found is None:
        typer.echo("OpenClaw CLI not found", err=True)
        raise typer.Exit(code=1)
    print(found, flush=True)


if __name__ == "__main__":
    app()
