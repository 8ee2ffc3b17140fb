"""Main CLI entry point for mvn-invoker."""

import json
from pathlib import Path

import click

from mvn_invoker.cli.display import show_command, show_error, show_result
from mvn_invoker.core.config.settings import Settings
from mvn_invoker.core.exceptions.errors import ConfigurationError
from mvn_invoker.core.logger.logger import setup_logging
from mvn_invoker.invoker.invoker import Invoker
from mvn_invoker.models.request import InvocationRequest, ReactorFailureBehavior


def parse_properties(values: tuple[str, ...]) -> dict[str, str]:
    """Turn ``-D key=value`` options into a property map.

    A bare key is set to ``true``, as Maven does.
    """
    properties: dict[str, str] = {}
    for item in values:
        key, sep, value = item.partition("=")
        if not key:
            raise click.BadParameter(f"Invalid property: {item!r}", param_hint="-D")
        properties[key] = value if sep else "true"
    return properties


def _echo_stdout(line: str) -> None:
    click.echo(line)


def _echo_stderr(line: str) -> None:
    click.echo(line, err=True)


@click.command(context_settings={"help_option_names": ["-h", "--help"]})
@click.argument("goals", nargs=-1)
@click.option("--file", "-f", "pom_file", type=click.Path(path_type=Path), help="POM file to build")
@click.option(
    "--base-dir", "-d", "base_directory",
    type=click.Path(exists=True, path_type=Path),
    help="Project base directory",
)
@click.option("-P", "profiles", multiple=True, help="Profile to activate (repeatable)")
@click.option("-D", "defines", multiple=True, help="Property as key=value (repeatable)")
@click.option("-pl", "projects", multiple=True, help="Reactor project to build (repeatable)")
@click.option("-am", "also_make", is_flag=True, help="Also build required projects")
@click.option("-amd", "also_make_dependents", is_flag=True, help="Also build dependent projects")
@click.option("-rf", "resume_from", help="Resume the reactor from this project")
@click.option("-T", "threads", help="Thread count, e.g. 4 or 1C")
@click.option("-B", "batch_mode", is_flag=True, help="Run in non-interactive (batch) mode")
@click.option("-o", "offline", is_flag=True, help="Work offline")
@click.option("-U", "update_snapshots", is_flag=True, help="Force a check for updated snapshots")
@click.option("-q", "quiet", is_flag=True, help="Quiet output, only errors")
@click.option("-X", "debug", is_flag=True, help="Produce execution debug output")
@click.option("-e", "show_errors", is_flag=True, help="Produce execution error messages")
@click.option("--fail-at-end", is_flag=True, help="Fail the build at the end")
@click.option("--fail-never", is_flag=True, help="Never fail the build")
@click.option("--timeout", type=click.IntRange(min=0), default=None, help="Timeout in seconds (0 for none)")
@click.option("--maven-home", type=click.Path(path_type=Path), help="Maven installation directory")
@click.option("--maven-executable", type=click.Path(path_type=Path), help="Maven executable")
@click.option("--local-repo", type=click.Path(path_type=Path), help="Local repository directory")
@click.option("--settings", "-s", "user_settings", type=click.Path(path_type=Path), help="User settings file")
@click.option("--config", "config_path", type=click.Path(exists=True, path_type=Path), help="YAML configuration file")
@click.option("--json", "as_json", is_flag=True, help="Print the result as JSON")
@click.option("--version", is_flag=True, help="Show version")
@click.pass_context
def main(
    ctx: click.Context,
    goals: tuple[str, ...],
    pom_file: Path | None,
    base_directory: Path | None,
    profiles: tuple[str, ...],
    defines: tuple[str, ...],
    projects: tuple[str, ...],
    also_make: bool,
    also_make_dependents: bool,
    resume_from: str | None,
    threads: str | None,
    batch_mode: bool,
    offline: bool,
    update_snapshots: bool,
    quiet: bool,
    debug: bool,
    show_errors: bool,
    fail_at_end: bool,
    fail_never: bool,
    timeout: int | None,
    maven_home: Path | None,
    maven_executable: Path | None,
    local_repo: Path | None,
    user_settings: Path | None,
    config_path: Path | None,
    as_json: bool,
    version: bool,
) -> None:
    """Run a Maven build as a child process.

    Output is streamed while the build runs; the command exits with
    Maven's own exit code, or 1 if Maven could not be run.

    Example:
        mvn-invoke -d my-project -B -P ci -D skipTests=true clean install
    """
    if version:
        from mvn_invoker import __version__

        click.echo(f"mvn-invoker version {__version__}")
        return

    try:
        settings = Settings.load(config_path)
    except ConfigurationError as e:
        show_error("Configuration Error", str(e))
        ctx.exit(1)
    setup_logging(settings.logging)

    failure_behavior = ReactorFailureBehavior.FAIL_FAST
    if fail_never:
        failure_behavior = ReactorFailureBehavior.FAIL_NEVER
    elif fail_at_end:
        failure_behavior = ReactorFailureBehavior.FAIL_AT_END

    request = InvocationRequest(
        base_directory=base_directory,
        pom_file=pom_file,
        goals=goals,
        profiles=profiles,
        properties=parse_properties(defines),
        projects=projects,
        also_make=also_make,
        also_make_dependents=also_make_dependents,
        resume_from=resume_from,
        threads=threads,
        batch_mode=batch_mode,
        offline=offline,
        update_snapshots=update_snapshots,
        quiet=quiet,
        debug=debug,
        show_errors=show_errors,
        reactor_failure_behavior=failure_behavior,
        timeout_in_seconds=timeout,
        maven_home=maven_home,
        maven_executable=maven_executable,
        local_repository_directory=local_repo,
        user_settings_file=user_settings,
        input_stream=None if batch_mode else click.get_binary_stream("stdin"),
    )

    # Keep stdout clean for the JSON document
    invoker = Invoker(
        output_handler=_echo_stderr if as_json else _echo_stdout,
        error_handler=_echo_stderr,
        settings=settings.invoker,
    )

    try:
        command = invoker.compile(request)
    except ConfigurationError as e:
        if as_json:
            click.echo(json.dumps({"success": False, "error_type": type(e).__name__, "error_message": e.message}))
        else:
            show_error("Configuration Error", e.message)
        ctx.exit(1)

    if not as_json:
        show_command(str(command))

    result = invoker.execute_sync(request)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        show_result(result)

    if result.execution_exception is not None or result.exit_code is None:
        ctx.exit(1)
    ctx.exit(result.exit_code)


if __name__ == "__main__":
    main()
