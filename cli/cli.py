"""Terminal front end for the reading plan client.

Reader commands show today's passage page by page and talk to the study
assistant; ``plans`` commands are the admin view. Every command first settles
the session, exactly like the web front end does on start.
"""

from __future__ import annotations

import asyncio
import webbrowser
from collections.abc import Awaitable, Callable
from typing import TypeVar

import typer
from loguru import logger
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from bibleapp.api.client import ApiClient
from bibleapp.api.errors import ErrorKind, UserFacingError
from bibleapp.chat.session import ChatSession
from bibleapp.chat.types import ChatMessage, ChatRole
from bibleapp.config.settings import settings
from bibleapp.core.logger import setup_logger
from bibleapp.plans.registry import PlanRegistry
from bibleapp.plans.types import PlanActionOutcome
from bibleapp.reading.controller import ReaderController
from bibleapp.reading.viewport import ViewConfig
from bibleapp.session.store import SessionStore
from bibleapp.session.types import SessionStatus
from bibleapp.storage.bookmarks import BookmarkStore
from bibleapp.storage.kv import JsonFileKeyValueStore
from bibleapp.storage.theme import ThemePreference
from bibleapp.verses.resolver import DailyVerseResolver
from bibleapp.verses.types import ResolutionOutcome

T = TypeVar("T")

console = Console()

app = typer.Typer(
    name="bibleapp",
    help="Daily reading plan client - today's passage, study assistant and plan admin",
    add_completion=False,
)
plans_app = typer.Typer(help="Manage reading plans (admin)")
app.add_typer(plans_app, name="plans")

DEFAULT_WIDTH = 1024

ERROR_STYLES: dict[ErrorKind, tuple[str, str]] = {
    ErrorKind.EXPECTED_EMPTY: ("yellow", "Nothing to read yet"),
    ErrorKind.AUTH: ("red", "Not signed in"),
    ErrorKind.VALIDATION: ("yellow", "Check your input"),
    ErrorKind.TRANSIENT: ("red", "Something went wrong"),
    ErrorKind.CONFIRMATION_REQUIRED: ("magenta", "Confirmation required"),
}

ROLE_STYLES: dict[ChatRole, str] = {
    ChatRole.USER: "bold cyan",
    ChatRole.ASSISTANT: "green",
    ChatRole.ERROR: "red",
    ChatRole.INFO: "dim",
}

# Overridable in tests to inject an httpx transport.
client_factory: Callable[[], ApiClient] = ApiClient


@app.callback()
def main(
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_file: str | None = typer.Option(None, "--log-file", help="Also write logs to this file (default: LOG_FILE)"),
) -> None:
    setup_logger(
        level="DEBUG" if debug else settings.log_level,
        log_file=log_file or settings.log_file,
        secret=settings.api_token,
    )


def _run(factory: Callable[[ApiClient], Awaitable[T]]) -> T:
    """Run an async command body with a client that is always closed."""

    async def runner() -> T:
        async with client_factory() as client:
            return await factory(client)

    return asyncio.run(runner())


def _print_error(error: UserFacingError) -> None:
    style, title = ERROR_STYLES[error.kind]
    console.print(Panel(Text(error.message), title=title, border_style=style))
    if error.kind == ErrorKind.AUTH:
        console.print("[dim]Run `bibleapp login` to sign in again.[/dim]")
    elif error.kind == ErrorKind.TRANSIENT:
        console.print("[dim]You can retry the same command.[/dim]")


def _exit_for(error: UserFacingError | None) -> None:
    if error is None:
        return
    _print_error(error)
    if error.kind not in (ErrorKind.EXPECTED_EMPTY, ErrorKind.CONFIRMATION_REQUIRED):
        raise typer.Exit(1)


def _print_message(message: ChatMessage) -> None:
    stamp = message.timestamp.astimezone().strftime("%H:%M")
    console.print(f"[dim]{stamp}[/dim] [{ROLE_STYLES[message.role]}]{message.role.value}[/] {message.content}")


async def _require_session(client: ApiClient) -> SessionStore:
    store = SessionStore(client)
    await store.check_session()
    if store.status != SessionStatus.AUTHENTICATED:
        message = store.last_error or "You are not signed in."
        _print_error(UserFacingError(kind=ErrorKind.AUTH, message=message))
        raise typer.Exit(1)
    return store


def _storage() -> JsonFileKeyValueStore:
    return JsonFileKeyValueStore(settings.storage_path)


@app.command()
def login(open_browser: bool = typer.Option(False, "--open", help="Open the sign-in page in a browser")) -> None:
    """Print (or open) the sign-in URL. Run `whoami` afterwards to check the session."""

    async def body(client: ApiClient) -> str:
        store = SessionStore(client, open_url=webbrowser.open if open_browser else None)
        return store.login()

    url = _run(body)
    console.print(f"Sign in at: [link={url}]{url}[/link]")


@app.command()
def logout() -> None:
    """Sign out on the backend."""

    async def body(client: ApiClient) -> SessionStore:
        store = SessionStore(client)
        await store.check_session()
        await store.logout()
        return store

    store = _run(body)
    if store.last_error:
        _exit_for(UserFacingError(kind=ErrorKind.TRANSIENT, message=f"Logout failed: {store.last_error}"))
    console.print("[green]Signed out.[/green]")


@app.command()
def whoami() -> None:
    """Show the current session."""

    async def body(client: ApiClient) -> SessionStore:
        store = SessionStore(client)
        await store.check_session()
        return store

    store = _run(body)
    if store.identity is not None:
        who = store.identity.name or store.identity.email or store.identity.id
        console.print(f"[green]Signed in[/green] as [bold]{who}[/bold]")
        return
    if store.last_error:
        _exit_for(UserFacingError(kind=ErrorKind.TRANSIENT, message=store.last_error))
    console.print("[yellow]Not signed in.[/yellow] Run `bibleapp login`.")


@app.command()
def today(
    width: int = typer.Option(DEFAULT_WIDTH, "--width", "-w", help="Viewport width used to size pages"),
    page: int = typer.Option(1, "--page", "-p", help="Page to show (1-based)"),
    all_pages: bool = typer.Option(False, "--all", help="Show every page"),
) -> None:
    """Show today's passage from the active plan."""

    async def body(client: ApiClient) -> ReaderController:
        store = await _require_session(client)
        reader = ReaderController(
            store,
            DailyVerseResolver(client),
            ChatSession(client),
            ViewConfig.from_settings(),
            width,
        )
        await reader.load_today()
        return reader

    reader = _run(body)
    verse = reader.verse
    if verse is None:
        _exit_for(reader.error)
        return

    paginator = reader.paginator
    if not all_pages and not paginator.go_to(page - 1):
        console.print(f"[yellow]No page {page}; showing page 1 of {paginator.page_count}.[/yellow]")

    title = verse.reference if not verse.title else f"{verse.title} - {verse.reference}"
    bookmarked = BookmarkStore(_storage()).is_bookmarked(verse)
    subtitle = f"Day {verse.day}" if verse.day else None
    if bookmarked:
        subtitle = f"{subtitle} · bookmarked" if subtitle else "bookmarked"

    body_text = "".join(paginator.pages) if all_pages else (paginator.current_page or "")
    console.print(Panel(Text(body_text.strip()), title=title, subtitle=subtitle, border_style="blue"))
    if not all_pages and paginator.page_count > 1:
        console.print(f"[dim]{paginator.current_index + 1} / {paginator.page_count}[/dim]")
    if verse.explanation:
        console.print(Panel(Text(verse.explanation), title="Explanation", border_style="dim"))


@app.command()
def ask(question: str = typer.Argument(..., help="Question about today's passage")) -> None:
    """Ask the study assistant about today's passage."""

    async def body(client: ApiClient) -> ChatSession:
        store = await _require_session(client)
        chat = ChatSession(client)
        reader = ReaderController(store, DailyVerseResolver(client), chat, ViewConfig.from_settings(), DEFAULT_WIDTH)
        resolution = await reader.load_today(include_text=False)
        if resolution is None or resolution.outcome != ResolutionOutcome.RESOLVED:
            _exit_for(reader.error)
            # Only an expected-empty outcome returns from _exit_for with an error set.
            raise typer.Exit(0 if reader.error is not None else 1)
        await chat.ask(question)
        return chat

    chat = _run(body)
    for message in chat.history:
        _print_message(message)
    if chat.usage is not None:
        console.print(f"[dim]Questions today: {chat.usage.usage_today}/{chat.usage.daily_limit}[/dim]")
    if chat.history and chat.history[-1].role == ChatRole.ERROR:
        raise typer.Exit(1)


@app.command("reset-chat")
def reset_chat() -> None:
    """Clear the study assistant conversation."""

    async def body(client: ApiClient) -> tuple[bool, ChatSession]:
        await _require_session(client)
        chat = ChatSession(client)
        return await chat.reset(), chat

    ok, chat = _run(body)
    for message in chat.history:
        _print_message(message)
    if not ok:
        raise typer.Exit(1)


@app.command()
def bookmark() -> None:
    """Toggle the bookmark for today's passage."""

    async def body(client: ApiClient) -> DailyVerseResolver:
        await _require_session(client)
        resolver = DailyVerseResolver(client)
        await resolver.resolve_today()
        return resolver

    resolver = _run(body)
    if resolver.verse is None:
        _exit_for(resolver.error)
        return
    added = BookmarkStore(_storage()).toggle(resolver.verse)
    console.print("Verse bookmarked!" if added else "Bookmark removed")


@app.command()
def bookmarks() -> None:
    """List bookmarked passages."""
    saved = BookmarkStore(_storage()).list()
    if not saved:
        console.print("[dim]No bookmarks yet.[/dim]")
        return
    table = Table("Reference", "Excerpt", "Saved")
    for entry in saved:
        table.add_row(entry.reference, entry.text, entry.date.astimezone().strftime("%Y-%m-%d"))
    console.print(table)


@app.command()
def theme(toggle: bool = typer.Option(False, "--toggle", help="Switch between light and dark")) -> None:
    """Show or toggle the saved theme."""
    preference = ThemePreference(_storage())
    current = preference.toggle() if toggle else preference.current
    console.print(f"Theme: [bold]{current.value}[/bold]")


async def _registry(client: ApiClient) -> PlanRegistry:
    await _require_session(client)
    registry = PlanRegistry(client)
    await registry.list_plans()
    return registry


def _print_plans(registry: PlanRegistry) -> None:
    plans = registry.sorted_plans()
    if not plans:
        console.print("[dim]No reading plans yet.[/dim]")
        return
    table = Table("ID", "Topic", "Days", "Created", "Active")
    for plan in plans:
        table.add_row(
            plan.id,
            plan.topic,
            str(plan.duration_days),
            plan.created_at.astimezone().strftime("%Y-%m-%d %H:%M"),
            "[green]●[/green]" if plan.is_active else "",
        )
    console.print(table)


def _finish(registry: PlanRegistry) -> None:
    if registry.notice:
        console.print(f"[green]{registry.notice}[/green]")
    _print_plans(registry)
    _exit_for(registry.error)


@plans_app.command("list")
def plans_list() -> None:
    """List plans, newest first."""
    registry = _run(_registry)
    _print_plans(registry)
    _exit_for(registry.error)


@plans_app.command("create")
def plans_create(
    topic: str = typer.Argument(..., help="Theme of the plan"),
    days: int = typer.Argument(7, help="Number of daily readings"),
) -> None:
    """Create a plan; it becomes the active plan."""

    async def body(client: ApiClient) -> PlanRegistry:
        registry = await _registry(client)
        await registry.create_plan(topic, days)
        return registry

    _finish(_run(body))


@plans_app.command("activate")
def plans_activate(plan_id: str = typer.Argument(..., help="Plan ID")) -> None:
    """Make a plan the active one."""

    async def body(client: ApiClient) -> PlanRegistry:
        registry = await _registry(client)
        await registry.activate_plan(plan_id)
        return registry

    _finish(_run(body))


@plans_app.command("delete")
def plans_delete(
    plan_id: str = typer.Argument(..., help="Plan ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip the confirmation prompt"),
) -> None:
    """Delete an inactive plan (asks for confirmation)."""

    async def body(client: ApiClient) -> PlanRegistry:
        registry = await _registry(client)
        outcome = await registry.delete_plan(plan_id)
        if outcome != PlanActionOutcome.CONFIRMATION_REQUIRED:
            return registry
        if yes or typer.confirm(f"Delete plan {plan_id}? This cannot be undone."):
            await registry.delete_plan(plan_id)
        else:
            registry.cancel_delete()
            logger.info(f"Delete of plan {plan_id} cancelled")
        return registry

    _finish(_run(body))


if __name__ == "__main__":
    app()
