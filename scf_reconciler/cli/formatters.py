"""Output formatters for CLI commands."""

from typing import Any, List

from rich.console import Console
from rich.markup import escape
from rich.table import Table

from scf_reconciler.config.models import ReconcilerConfig
from scf_reconciler.core.state import ResourceState, is_set
from scf_reconciler.resources.base import ResourceDescriptor
from scf_reconciler.security.validation import sanitize_log_input

MASK = "********"


def safe_text(text: str) -> str:
    """Sanitize untrusted text and escape it for rich markup."""
    return escape(sanitize_log_input(text))


def format_value(value: Any, sensitive: bool = False) -> str:
    """Render one attribute value for display."""
    if not is_set(value):
        return "[dim]-[/dim]"
    if sensitive:
        return MASK
    if isinstance(value, bool):
        return "true" if value else "false"
    return safe_text(str(value))


class StateFormatter:
    """Formats resource state for display."""

    def __init__(self, console: Console):
        self.console = console

    def format_state(self, state: ResourceState, descriptor: ResourceDescriptor, title: str = "") -> None:
        """Display every attribute of a state record; sensitive values are masked."""
        table = Table(title=title or f"{descriptor.type_name} {state.handle or ''}".strip())
        table.add_column("Attribute", style="cyan")
        table.add_column("Value", style="green")
        table.add_column("Description", style="dim")

        for spec in descriptor.fields:
            table.add_row(
                spec.name,
                format_value(state.get(spec.name), sensitive=spec.sensitive),
                descriptor.descriptions.get(spec.name, ""),
            )
        self.console.print(table)

    def format_handles(self, resource_type: str, handles: List[str]) -> None:
        if not handles:
            self.console.print(f"[yellow]No stored {resource_type} resources[/yellow]")
            return

        table = Table(title=f"Stored {resource_type} resources")
        table.add_column("Handle", style="cyan")
        for handle in handles:
            table.add_row(safe_text(handle))
        self.console.print(table)


class SchemaFormatter:
    """Formats resource type schemas for display."""

    def __init__(self, console: Console):
        self.console = console

    def format_schema(self, descriptor: ResourceDescriptor) -> None:
        kind = "resource" if descriptor.managed else "data source"
        table = Table(title=f"{descriptor.type_name} ({kind})")
        table.add_column("Attribute", style="cyan")
        table.add_column("Type")
        table.add_column("Mode")
        table.add_column("Updatable")
        table.add_column("Description", style="dim")

        grouped = set(descriptor.grouped_fields)
        for spec in descriptor.fields:
            mode = spec.config.value
            if spec.sensitive:
                mode += ", sensitive"
            table.add_row(
                spec.name,
                spec.kind.value,
                mode,
                "yes" if spec.name in grouped else "",
                descriptor.descriptions.get(spec.name, ""),
            )

        self.console.print(table)
        self.console.print(f"[dim]{descriptor.description}[/dim]")


class ConfigFormatter:
    """Formats configuration information for display."""

    def __init__(self, console: Console):
        self.console = console

    def format_config_summary(self, config: ReconcilerConfig) -> None:
        """Display configuration summary."""
        table = Table(title="Configuration Summary")
        table.add_column("Setting", style="cyan")
        table.add_column("Value", style="green")

        table.add_row("SCF API URL", safe_text(config.api.base_url))
        table.add_row("Service Account Token", MASK)
        table.add_row("Timeout", f"{config.api.timeout_seconds}s")
        table.add_row("Region", safe_text(config.region))
        table.add_row("Default Project", safe_text(config.default_project_id or "-"))
        table.add_row("State Directory", safe_text(str(config.state_dir)))
        table.add_row("Log Level", config.logging.level)

        self.console.print(table)
