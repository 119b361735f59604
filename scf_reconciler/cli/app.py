"""Command line host for the SCF reconciler.

The CLI plays the role of the host: it turns files and arguments into
desired state, calls the lifecycle orchestrator and persists whatever state
comes back through the file-backed ``StateStore``.
"""

import logging
import sys
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import typer
import yaml
from rich.console import Console

from scf_reconciler.cli.factory import ClientFactory, ComponentFactory
from scf_reconciler.cli.formatters import ConfigFormatter, SchemaFormatter, StateFormatter, safe_text
from scf_reconciler.clients.exceptions import APIError, ConfigurationError
from scf_reconciler.config.loader import ConfigLoader, find_config_file, load_config_from_path
from scf_reconciler.config.models import ReconcilerConfig
from scf_reconciler.core.errors import FatalError, ReconcileError
from scf_reconciler.core.lifecycle import LifecycleOutcome, ResourceLifecycle
from scf_reconciler.core.state import ResourceState
from scf_reconciler.core.store import StateStore
from scf_reconciler.resources import RESOURCE_TYPES, get_descriptor
from scf_reconciler.security.validation import validate_file_path

console = Console()
logger = structlog.get_logger(__name__)

app = typer.Typer(
    name="scf-reconcile",
    help="Reconcile STACKIT Cloud Foundry organizations, organization managers and platforms.",
    rich_markup_mode="rich",
    no_args_is_help=True,
)

CONFIG_OPTION = typer.Option(None, "--config", "-c", help="Path to configuration file")


def setup_logging(log_level: str = "INFO", log_format: str = "text") -> None:
    """Setup structured logging.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        log_format: Log format (json or text).
    """
    logging.basicConfig(
        level=getattr(logging, log_level.upper(), logging.INFO),
        format="%(message)s",
        stream=sys.stderr,
        force=True,
    )

    processors = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if log_format.lower() == "json":
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def load_configuration(config_file: Optional[Path] = None) -> ReconcilerConfig:
    """Load configuration from a file, or from the environment when there is none.

    Raises:
        typer.Exit: If configuration loading fails
    """
    try:
        if config_file is None:
            config_file = find_config_file()

        if config_file is None:
            config = ReconcilerConfig.from_env()
        else:
            if not validate_file_path(str(config_file)):
                console.print(
                    f"[red]Error: Invalid or unsafe configuration file path: "
                    f"{safe_text(str(config_file))}[/red]"
                )
                raise typer.Exit(1)
            config = load_config_from_path(config_file)
    except (ConfigurationError, ValueError) as e:
        console.print(f"[red]Error loading configuration: {safe_text(str(e))}[/red]")
        raise typer.Exit(1)

    setup_logging(config.logging.level, config.logging.format)
    return config


def _descriptor_or_exit(resource_type: str):
    try:
        return get_descriptor(resource_type)
    except KeyError as e:
        console.print(f"[red]{safe_text(e.args[0])}[/red]")
        raise typer.Exit(1)


def _read_attributes(path: Path) -> Dict[str, Any]:
    """Read desired attributes from a YAML or JSON file."""
    if not validate_file_path(str(path)) or not path.exists():
        console.print(f"[red]Error: Cannot read attributes file {safe_text(str(path))}[/red]")
        raise typer.Exit(1)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        console.print(f"[red]Invalid attributes file: {safe_text(str(e))}[/red]")
        raise typer.Exit(1)
    if not isinstance(data, dict):
        console.print("[red]Attributes file must contain a mapping of attribute names to values[/red]")
        raise typer.Exit(1)
    return data


def _save_partial(store: StateStore, error: FatalError) -> None:
    partial = error.partial_state
    if isinstance(partial, ResourceState) and partial.handle is not None:
        store.save(partial)
        console.print(
            f"[yellow]Saved partially reconciled state for {safe_text(partial.handle)}; "
            f"run apply again to finish[/yellow]"
        )


def _fail(error: Exception) -> None:
    console.print(f"[red]{safe_text(str(error))}[/red]")
    raise typer.Exit(1)


class _Session:
    """Configuration, client, store and lifecycle for one command."""

    def __init__(self, config_file: Optional[Path], resource_type: str) -> None:
        self.descriptor = _descriptor_or_exit(resource_type)
        self.config = load_configuration(config_file)
        try:
            self.client = ClientFactory.create_scf_client(self.config.api)
        except ValueError as e:
            _fail(e)
        self.store = ComponentFactory.create_state_store(self.config)
        self.lifecycle: ResourceLifecycle = ComponentFactory.create_lifecycle(
            self.config, self.client, resource_type
        )

    def __enter__(self) -> "_Session":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.client.close()

    def stored(self, handle: str) -> ResourceState:
        state = self.store.load(self.descriptor.type_name, handle)
        if state is None:
            console.print(
                f"[red]No stored state for {self.descriptor.type_name} "
                f"{safe_text(handle)}[/red]"
            )
            raise typer.Exit(1)
        return state


@app.command()
def validate(config_file: Optional[Path] = CONFIG_OPTION) -> None:
    """Validate configuration."""
    console.print("[blue]Validating configuration...[/blue]")
    if config_file is None:
        config_file = find_config_file()

    if config_file is not None and validate_file_path(str(config_file)):
        missing = ConfigLoader().get_missing_env_vars(config_file)
        if missing:
            console.print("[red]Missing environment variables:[/red]")
            for name in missing:
                console.print(f"  [red]- {safe_text(name)}[/red]")
            raise typer.Exit(1)

    config = load_configuration(config_file)
    ConfigFormatter(console).format_config_summary(config)
    console.print("[green]✓ Configuration is valid[/green]")


@app.command()
def schema(
    resource_type: Optional[str] = typer.Argument(None, help="Resource type (all types when omitted)"),
) -> None:
    """Show the attributes of resource types."""
    formatter = SchemaFormatter(console)
    if resource_type is None:
        for descriptor in RESOURCE_TYPES.values():
            formatter.format_schema(descriptor)
        return
    formatter.format_schema(_descriptor_or_exit(resource_type))


@app.command()
def read(
    resource_type: str = typer.Argument(..., help="Resource type"),
    handle: str = typer.Argument(..., help="Handle of a stored resource"),
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Refresh a stored resource from SCF."""
    with _Session(config_file, resource_type) as session:
        state = session.stored(handle)
        try:
            result = session.lifecycle.read(state)
        except ReconcileError as e:
            _fail(e)

        if result.outcome is LifecycleOutcome.REMOVED:
            session.store.delete(resource_type, handle)
            console.print(
                f"[yellow]{resource_type} {safe_text(handle)} no longer exists; "
                f"removed from state[/yellow]"
            )
            return

        session.store.save(result.state)
        if result.state.handle != handle:
            session.store.delete(resource_type, handle)
        StateFormatter(console).format_state(result.state, session.descriptor)


@app.command("import")
def import_resource(
    resource_type: str = typer.Argument(..., help="Resource type"),
    identifier: str = typer.Argument(..., help="Import identifier, e.g. project_id,org_id"),
    project_id: Optional[str] = typer.Option(
        None, "--project", "-p", help="Project id when the identifier carries none"
    ),
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Adopt an existing resource into state."""
    with _Session(config_file, resource_type) as session:
        scope_id = project_id or session.config.default_project_id
        try:
            result = session.lifecycle.import_state(identifier, scope_id=scope_id)
        except ReconcileError as e:
            _fail(e)

        session.store.save(result.state)
        console.print(f"[green]✓ Imported {resource_type} {safe_text(result.state.handle)}[/green]")
        StateFormatter(console).format_state(result.state, session.descriptor)


@app.command()
def apply(
    resource_type: str = typer.Argument(..., help="Resource type"),
    attributes_file: Path = typer.Argument(..., help="YAML or JSON file with the desired attributes"),
    handle: Optional[str] = typer.Option(
        None, "--handle", help="Handle of the stored resource to update; creates a new one when omitted"
    ),
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Create a resource, or correct drift on a stored one."""
    with _Session(config_file, resource_type) as session:
        attributes = _read_attributes(attributes_file)
        scope_field = session.descriptor.handle.scope_field
        if attributes.get(scope_field) is None and session.config.default_project_id:
            attributes[scope_field] = session.config.default_project_id

        try:
            desired = session.lifecycle.mapper.to_desired_state(attributes)
        except ReconcileError as e:
            _fail(e)

        observed = session.stored(handle) if handle else None
        try:
            if observed is None:
                result = session.lifecycle.create(desired)
            else:
                result = session.lifecycle.update(desired, observed)
        except FatalError as e:
            _save_partial(session.store, e)
            _fail(e)
        except ReconcileError as e:
            _fail(e)

        session.store.save(result.state)
        console.print(
            f"[green]✓ {result.outcome.value.capitalize()} {resource_type} "
            f"{safe_text(result.state.handle)}[/green]"
        )
        StateFormatter(console).format_state(result.state, session.descriptor)


@app.command()
def delete(
    resource_type: str = typer.Argument(..., help="Resource type"),
    handle: str = typer.Argument(..., help="Handle of a stored resource"),
    auto_approve: bool = typer.Option(False, "--auto-approve", help="Skip interactive approval"),
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Delete a stored resource from SCF."""
    with _Session(config_file, resource_type) as session:
        state = session.stored(handle)
        if not auto_approve and not typer.confirm(f"Delete {resource_type} {handle}?"):
            console.print("Operation cancelled")
            return

        try:
            session.lifecycle.delete(state)
        except ReconcileError as e:
            _fail(e)

        session.store.delete(resource_type, handle)
        console.print(f"[green]✓ Deleted {resource_type} {safe_text(handle)}[/green]")


@app.command()
def lookup(
    resource_type: str = typer.Argument(..., help="Resource type"),
    lookup_id: str = typer.Argument(..., help="Id the resource is addressed by, e.g. a platform guid"),
    project_id: Optional[str] = typer.Option(None, "--project", "-p", help="Project id"),
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """Read a resource without storing it."""
    with _Session(config_file, resource_type) as session:
        descriptor = session.descriptor
        scope_id = project_id or session.config.default_project_id
        if not scope_id:
            console.print("[red]A project id is required (--project or default_project_id)[/red]")
            raise typer.Exit(1)

        config = ResourceState(
            descriptor.type_name,
            {descriptor.handle.scope_field: scope_id, descriptor.lookup_field: lookup_id},
        )
        try:
            result = session.lifecycle.lookup(config)
        except ReconcileError as e:
            _fail(e)

        StateFormatter(console).format_state(result.state, descriptor)


@app.command("list")
def list_resources(
    resource_type: str = typer.Argument(..., help="Resource type"),
    config_file: Optional[Path] = CONFIG_OPTION,
) -> None:
    """List stored resources of a type."""
    _descriptor_or_exit(resource_type)
    config = load_configuration(config_file)
    store = ComponentFactory.create_state_store(config)
    StateFormatter(console).format_handles(resource_type, store.list_handles(resource_type))


def main() -> None:
    """Entry point for the console script."""
    try:
        app()
    except APIError as e:
        console.print(f"[red]SCF API error: {safe_text(str(e))}[/red]")
        sys.exit(1)


if __name__ == "__main__":
    main()
