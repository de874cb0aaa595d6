"""CLI entry point for termhost."""

from __future__ import annotations

import logging
import os
import threading

import typer
from rich.console import Console
from rich.table import Table

from termhost.config import TermhostConfig
from termhost.events import EventType, Wire
from termhost.service import TerminalService
from termhost.terminal.models import CommandResult
from termhost.terminal.procs import kill_process, list_processes
from termhost.terminal.text import complete_command, highlight_output, sanitize_binary_output

app = typer.Typer(
    name="termhost",
    help="Run commands and drive interactive shell sessions.",
    no_args_is_help=True,
)

console = Console()
err_console = Console(stderr=True)


def setup_logging(verbose: bool = False) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def _print_result(result: CommandResult) -> None:
    if result.stdout:
        console.print(highlight_output("\n".join(result.stdout)), end="")
    for line in result.stderr:
        err_console.print(line, style="red", markup=False, highlight=False)
    if not result.success:
        err_console.print(
            f"[exit {result.exit_code}] {result.command} ({result.duration_ms}ms)",
            style="dim",
            markup=False,
        )


@app.command()
def run(
    command: str = typer.Argument(help="Command to run through sh -c."),
    cwd: str | None = typer.Option(
        None, "--cwd", "-C", help="Working directory (default: current directory)."
    ),
    timeout: float | None = typer.Option(
        None, "--timeout", "-t", help="Kill the command after this many seconds."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Run a one-shot command and print its output."""
    setup_logging(verbose)
    config = TermhostConfig.load(config_file)
    if timeout is not None:
        config.execution.command_timeout = timeout

    service = TerminalService(config)
    result = service.execute_command(command, os.path.abspath(cwd or os.getcwd()))
    _print_result(result)
    raise typer.Exit(0 if result.success else max(result.exit_code, 1))


@app.command()
def root(
    command: str = typer.Argument(help="Command to run through su -c."),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Run a one-shot command with elevated privileges."""
    setup_logging(verbose)
    service = TerminalService(TermhostConfig.load(config_file))
    if not service.is_root_available():
        typer.echo("Error: root is not available on this host", err=True)
        raise typer.Exit(1)
    result = service.execute_root_command(command)
    _print_result(result)
    raise typer.Exit(0 if result.success else max(result.exit_code, 1))


@app.command()
def info(
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Show terminal capabilities of this host."""
    service = TerminalService(TermhostConfig.load(config_file))
    terminal = service.get_terminal_info()

    table = Table(title=f"termhost v{terminal.version}", show_header=False)
    table.add_column("key", style="bold")
    table.add_column("value")
    table.add_row("OS", terminal.os_info)
    table.add_row("Shell", terminal.shell_path)
    table.add_row("Root", "yes" if terminal.root_available else "no")
    table.add_row("Features", ", ".join(terminal.features))
    for name, enabled in terminal.capabilities.model_dump().items():
        table.add_row(name, "yes" if enabled else "no")
    console.print(table)


@app.command()
def complete(
    partial: str = typer.Argument(help="Partial command line."),
    cwd: str | None = typer.Option(None, "--cwd", "-C", help="Directory for relative paths."),
) -> None:
    """Print completions for the last word of a command line."""
    for completion in complete_command(partial, os.path.abspath(cwd or os.getcwd())):
        typer.echo(completion)


@app.command()
def ps(
    filter_text: str | None = typer.Argument(None, help="Only show commands containing this."),
) -> None:
    """List host processes."""
    table = Table()
    for column in ("PID", "PPID", "USER", "%CPU", "%MEM", "RSS", "COMMAND"):
        table.add_column(column, justify="right" if column != "COMMAND" else "left")
    for p in list_processes():
        if filter_text and filter_text not in p.command:
            continue
        table.add_row(
            str(p.pid), str(p.ppid), p.user, f"{p.cpu:.1f}", f"{p.mem:.1f}", str(p.rss), p.command
        )
    console.print(table)


@app.command()
def kill(pid: int = typer.Argument(help="Process id to terminate.")) -> None:
    """Send SIGTERM to a process."""
    if not kill_process(pid):
        typer.echo(f"Error: could not signal pid {pid}", err=True)
        raise typer.Exit(1)


@app.command()
def shell(
    cwd: str | None = typer.Option(
        None, "--cwd", "-C", help="Session working directory (default: current directory)."
    ),
    history_file: str | None = typer.Option(
        None, "--history", "-H", help="Load history from and save it to this file."
    ),
    read_timeout: int = typer.Option(
        300, "--read-timeout", "-r", help="Milliseconds to collect output after each line."
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
    config_file: str | None = typer.Option(None, "--config", "-c", help="Config file path."),
) -> None:
    """Drive an interactive shell session line by line.

    ``:history`` prints the session history; ``:quit`` leaves.
    """
    setup_logging(verbose)
    config = TermhostConfig.load(config_file)
    wire = Wire()
    exits = wire.subscribe()
    service = TerminalService(config, wire=wire)

    session_id = service.create_session(os.path.abspath(cwd or os.getcwd()))
    if history_file and os.path.exists(history_file):
        loaded = service.load_command_history(session_id, history_file)
        if not loaded.success:
            typer.echo(f"Warning: {loaded.message}", err=True)

    started = service.start_interactive_shell(session_id)
    if not started.success:
        typer.echo(f"Error: {started.message}", err=True)
        service.shutdown()
        raise typer.Exit(1)
    typer.echo(f"Shell: {started.shell_path} (session {session_id})")

    def _watch_exit() -> None:
        while True:
            event = exits.get()
            if event is None:
                break
            if event.type == EventType.SHELL_EXITED:
                err_console.print(
                    f"[shell exited with code {event.data.get('exit_code')}]",
                    style="dim",
                    markup=False,
                )

    watcher = threading.Thread(target=_watch_exit, daemon=True)
    watcher.start()

    try:
        while service.is_shell_running(session_id):
            try:
                line = input("$ ")
            except (EOFError, KeyboardInterrupt):
                typer.echo("")
                break

            if line.strip() == ":quit":
                break
            if line.strip() == ":history":
                for i, entry in enumerate(service.get_command_history(session_id).history, 1):
                    typer.echo(f"{i:5d}  {entry}")
                continue

            sent = service.send_input(session_id, line)
            if not sent.success:
                typer.echo(f"Error: {sent.message}", err=True)
                break

            output = service.read_output(session_id, read_timeout)
            for out_line in output.stdout:
                console.print(
                    highlight_output(sanitize_binary_output(out_line)), end=""
                )
            for err_line in output.stderr:
                err_console.print(
                    sanitize_binary_output(err_line), style="red", markup=False, highlight=False
                )
    finally:
        if history_file:
            saved = service.save_command_history(session_id, history_file)
            if not saved.success:
                typer.echo(f"Warning: {saved.message}", err=True)
        service.shutdown()
        wire.close()


def main() -> None:
    app()


if __name__ == "__main__":
    main()
