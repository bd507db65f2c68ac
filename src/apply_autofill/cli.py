"""Command-line interface for apply-autofill."""

import asyncio
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from apply_autofill.browser.agent import BrowserAgent
from apply_autofill.config import settings
from apply_autofill.core.manager import AutoFillManager
from apply_autofill.core.models import AutoFillFailure, FillOptions
from apply_autofill.services.notifier import LogNotifier, WebhookNotifier
from apply_autofill.services.profile import FileProfileClient, RemoteProfileClient
from apply_autofill.storage.audit import FillLog
from apply_autofill.storage.store import JsonFileStore
from apply_autofill.utils.logging import configure_logging

app = typer.Typer(
    name="apply-autofill",
    help="Detect and fill job application forms from your profile",
    add_completion=False,
)
console = Console()

ProfileOption = typer.Option(None, "--profile", help="JSON profile file instead of the profile service")
StoreOption = typer.Option(None, "--store", help="Key-value store file")
HeadedOption = typer.Option(False, "--headed", help="Show the browser window")


def _store(path: Optional[Path]) -> JsonFileStore:
    return JsonFileStore(path or settings.storage_path)


def _profile_client(path: Optional[Path]):
    if path is not None:
        return FileProfileClient(path)
    return RemoteProfileClient()


def _notifier():
    if settings.notify_webhook_url:
        return WebhookNotifier(settings.notify_webhook_url)
    return LogNotifier()


def _print_failure(failure: AutoFillFailure) -> None:
    console.print(f"❌ {failure.message} ({failure.reason.value})")
    for item in failure.missing_fields:
        console.print(f"   • {item.label} [dim]({item.name})[/dim]")


@asynccontextmanager
async def _session(url: str, profile: Optional[Path], store: Optional[Path], headed: bool):
    """Yield a manager for the page at `url`, or None when it cannot be opened."""
    profile_client = _profile_client(profile)
    notifier = _notifier()
    try:
        async with BrowserAgent(headless=not headed) as agent:
            if not await agent.navigate_to(url):
                console.print(f"❌ Could not open {url}")
                yield None
                return
            yield AutoFillManager(
                agent.page,
                profile_client=profile_client,
                store=_store(store),
                notifier=notifier,
            )
    finally:
        await profile_client.close()
        await notifier.close()


async def _preview(url: str, profile: Optional[Path], store: Optional[Path], headed: bool) -> int:
    async with _session(url, profile, store, headed) as manager:
        if manager is None:
            return 1

        init = await manager.initialize()
        if not init.success:
            console.print(f"⚠️  {init.message}")
            return 1

        summary = init.current_form
        console.print(
            f"🔍 Found {init.forms_found} application form(s); "
            f"using the first ({summary.field_count} fields, score {summary.score})"
        )

        preview = await manager.get_field_preview()
        if not preview:
            console.print("⚠️  No profile available for the preview")
            return 1

        table = Table(title="Field Preview")
        table.add_column("Field", style="cyan")
        table.add_column("Label")
        table.add_column("Type")
        table.add_column("Required")
        table.add_column("Value", style="green")

        for item in preview:
            table.add_row(
                item.canonical_name,
                item.label,
                item.kind.value,
                "yes" if item.required else "",
                str(item.value) if item.will_fill else "[dim]-[/dim]",
            )
        console.print(table)
        return 0


async def _fill(
    url: str,
    options: FillOptions,
    profile: Optional[Path],
    store: Optional[Path],
    headed: bool,
    assume_yes: bool,
) -> int:
    async with _session(url, profile, store, headed) as manager:
        if manager is None:
            return 1

        if not await manager.is_auto_fill_enabled():
            console.print("⚠️  Auto-fill is disabled in settings")
            return 1

        init = await manager.initialize()
        if not init.success:
            console.print(f"⚠️  {init.message}")
            return 1

        if not assume_yes and not typer.confirm(
            f"Fill {init.current_form.field_count} fields on {url}?", default=True
        ):
            console.print("Cancelled")
            return 1

        result = await manager.start_auto_fill(options)
        if isinstance(result, AutoFillFailure):
            _print_failure(result)
            return 1

        console.print(
            f"✅ Filled {result.filled_count} field(s), "
            f"{result.error_count} error(s), {len(result.skipped_fields)} skipped"
        )
        for error in result.errors:
            console.print(f"   ❌ {error.label}: {error.message}")
        for skipped in result.skipped_fields:
            console.print(f"   [dim]skipped {skipped.label}: {skipped.reason}[/dim]")
        return 0 if result.success else 2


@app.command()
def preview(
    url: str = typer.Argument(..., help="Page containing the application form"),
    profile: Optional[Path] = ProfileOption,
    store: Optional[Path] = StoreOption,
    headed: bool = HeadedOption,
) -> None:
    """Show the values each detected field would receive."""
    configure_logging()
    raise typer.Exit(asyncio.run(_preview(url, profile, store, headed)))


@app.command()
def fill(
    url: str = typer.Argument(..., help="Page containing the application form"),
    skip_optional: bool = typer.Option(False, "--skip-optional", help="Only fill required fields"),
    include_demographics: bool = typer.Option(
        not settings.skip_demographics_default,
        "--include-demographics",
        help="Also answer veteran, disability, gender and race questions",
    ),
    no_focus_first: bool = typer.Option(False, "--no-focus-first", help="Do not scroll to the first field"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
    profile: Optional[Path] = ProfileOption,
    store: Optional[Path] = StoreOption,
    headed: bool = HeadedOption,
) -> None:
    """Fill the first application form on a page."""
    configure_logging()
    options = FillOptions(
        skip_optional=skip_optional,
        skip_demographics=not include_demographics,
        focus_first=not no_focus_first,
    )
    raise typer.Exit(asyncio.run(_fill(url, options, profile, store, headed, yes)))


@app.command()
def logs(
    limit: int = typer.Option(10, "--limit", "-n", help="Number of entries to show"),
    store: Optional[Path] = StoreOption,
) -> None:
    """Show recent auto-fill runs, newest first."""
    entries = asyncio.run(FillLog(_store(store)).entries(limit))
    if not entries:
        console.print("No auto-fill runs recorded")
        return

    table = Table(title="Auto-fill Log")
    table.add_column("When", style="cyan")
    table.add_column("Domain")
    table.add_column("Filled", justify="right")
    table.add_column("Errors", justify="right")
    table.add_column("Result")

    for entry in entries:
        table.add_row(
            entry.timestamp.strftime("%Y-%m-%d %H:%M:%S"),
            entry.domain,
            str(entry.filled_count),
            str(entry.error_count),
            "✅" if entry.success else "❌",
        )
    console.print(table)


@app.command("clear-logs")
def clear_logs(store: Optional[Path] = StoreOption) -> None:
    """Delete the auto-fill log."""
    asyncio.run(FillLog(_store(store)).clear())
    console.print("🧹 Auto-fill log cleared")


@app.command()
def config() -> None:
    """Show current configuration."""
    table = Table(title="apply-autofill Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="green")

    # Show non-sensitive settings
    table.add_row("Debug Mode", str(settings.debug))
    table.add_row("Log Level", settings.log_level)
    table.add_row("Browser Headless", str(settings.browser_headless))
    table.add_row("Storage Path", settings.storage_path)
    table.add_row("Audit Log Capacity", str(settings.audit_log_capacity))
    table.add_row("Profile Service", settings.profile_api_url or "not configured")
    table.add_row("Profile Token", "configured" if settings.profile_api_token else "missing")
    table.add_row("Webhook", settings.notify_webhook_url or "not configured")
    table.add_row("Element Wait Ceiling", f"{settings.wait_for_element_timeout_ms} ms")
    table.add_row("Typing Delay", f"{settings.typing_delay_min_ms}-{settings.typing_delay_max_ms} ms")
    table.add_row("Field Delay", f"{settings.field_delay_min_ms}-{settings.field_delay_max_ms} ms")
    table.add_row("Skip Demographics", str(settings.skip_demographics_default))

    console.print(table)


@app.command()
def version() -> None:
    """Show version information."""
    from apply_autofill import __version__
    console.print(f"apply-autofill v{__version__}")


def main() -> None:
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
