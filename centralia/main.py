"""
Centralia CLI Entry Point

Command-line interface for chatting with the finance assistant and
managing stored conversations.
"""

import asyncio
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table

from centralia.config import Settings, get_settings, load_settings
from centralia.protocol.elements import ButtonsElement
from centralia.protocol.events import DataRequest, FieldType, PendingAction
from centralia.protocol.render import format_brl, render_elements
from centralia.utils.logger import configure_from_settings
from centralia_chat.deps import (
    get_conversation_engine,
    get_session_repository,
    get_session_service,
    get_transport,
)
from centralia_chat.domain.entities.message import Message, MessageRole
from centralia_chat.domain.errors import ChatError
from centralia_chat.domain.value_objects.conversation_status import ConversationStatus
from centralia_chat.infrastructure.db import dispose_engine
from centralia_chat.services.continuity import SessionContinuityManager
from centralia_chat.services.conversation_engine import ConversationEngine
from centralia_chat.services.session_service import SessionService

app = typer.Typer(
    name="centralia",
    help="Centralia - conversational assistant for personal finances",
    add_completion=False,
    invoke_without_command=True,
)
sessions_app = typer.Typer(help="Manage stored conversations", add_completion=False)
app.add_typer(sessions_app, name="sessions")
console = Console()

CHAT_HELP = (
    "[dim]/new[/dim] nova conversa  [dim]/sessions[/dim] listar  "
    "[dim]/load <id>[/dim] abrir  [dim]/delete \\[id][/dim] excluir  [dim]/quit[/dim] sair"
)


def _load(env_file: Optional[Path], verbose: bool = False) -> Settings:
    settings = load_settings(env_file) if env_file else get_settings()
    if verbose:
        settings.log_level = "DEBUG"
    configure_from_settings(settings)
    return settings


@app.callback(invoke_without_command=True)
def main_callback(
    ctx: typer.Context,
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    Centralia - conversational assistant for personal finances.

    Run directly without subcommand to open a chat.

    Examples:
        centralia                       # Chat, resuming the latest conversation
        centralia chat --new            # Chat in a fresh conversation
        centralia sessions list         # Show stored conversations
        centralia config                # Show configuration
    """
    if ctx.invoked_subcommand is not None:
        return
    settings = _load(env_file, verbose)
    asyncio.run(_chat(settings, session_id=None, fresh=False, verbose=verbose))


@app.command()
def chat(
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
    session_id: Optional[str] = typer.Option(None, "--session", "-s", help="Open a stored session"),
    fresh: bool = typer.Option(False, "--new", "-n", help="Do not resume the latest session"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable verbose logging"),
):
    """
    Open an interactive chat.
    """
    settings = _load(env_file, verbose)
    asyncio.run(_chat(settings, session_id=session_id, fresh=fresh, verbose=verbose))


class _StreamPrinter:
    """Engine listener echoing streamed tokens as they arrive."""

    def __init__(self) -> None:
        self.flushed = ""

    def __call__(self, engine: ConversationEngine) -> None:
        text = engine.streaming_text
        if text.startswith(self.flushed) and len(text) > len(self.flushed):
            console.print(text[len(self.flushed) :], end="", markup=False, highlight=False)
            self.flushed = text

    def reset(self) -> None:
        if self.flushed:
            console.print()
        self.flushed = ""


async def _chat(settings: Settings, session_id: Optional[str], fresh: bool, verbose: bool) -> None:
    transport = get_transport(settings)
    engine = get_conversation_engine(settings, transport=transport)
    printer = _StreamPrinter()
    engine.subscribe(printer)

    console.print("\n[bold blue]Centralia[/bold blue]")
    console.print(CHAT_HELP)

    try:
        if session_id:
            await engine.load_session(session_id)
        elif not fresh:
            await SessionContinuityManager(engine, get_session_repository(settings)).activate()

        if engine.messages:
            title = engine.session.title if engine.session else None
            console.print(f"\n[cyan]Conversa:[/cyan] {title or settings.chat.default_title}")
            for message in engine.messages:
                _print_message(message)

        await _repl(engine, printer, settings)
    except ChatError as e:
        console.print(f"\n[red]{e}[/red]")
        if verbose:
            console.print_exception()
        raise typer.Exit(1)
    finally:
        await transport.aclose()
        if settings.session_store.is_postgres():
            await dispose_engine()


async def _repl(engine: ConversationEngine, printer: _StreamPrinter, settings: Settings) -> None:
    while True:
        text = await asyncio.to_thread(console.input, "\n[bold green]você>[/bold green] ")
        command, _, argument = text.strip().partition(" ")

        if command in ("/quit", "/exit"):
            return
        if command == "/help":
            console.print(CHAT_HELP)
            continue
        if command == "/new":
            engine.start_new_session()
            console.print("[cyan]Nova conversa iniciada.[/cyan]")
            continue
        if command == "/sessions":
            sessions = await get_session_service(settings).recent_sessions()
            _print_sessions(sessions, settings)
            continue
        if command == "/load":
            try:
                await engine.load_session(argument.strip())
            except ChatError as e:
                console.print(f"[red]{e}[/red]")
                continue
            for message in engine.messages:
                _print_message(message)
            continue
        if command == "/delete":
            await _delete_session(engine, get_session_service(settings), argument.strip())
            continue

        choice = _button_choice(engine, text.strip())
        if choice is not None:
            await _run(engine, printer, engine.answer_buttons(*choice))
        else:
            await _run(engine, printer, engine.send_message(text))
        await _resolve_gates(engine, printer)


async def _delete_session(engine: ConversationEngine, service: SessionService, session_id: str) -> None:
    """Delete a stored session; deleting the open one starts a new conversation."""
    session_id = session_id or engine.session_id or ""
    if not session_id:
        console.print("[yellow]Nenhuma conversa salva para excluir.[/yellow]")
        return
    try:
        await service.delete_session(session_id)
    except ChatError as e:
        console.print(f"[red]{e}[/red]")
        return
    console.print("[green]Conversa excluída[/green]")
    if session_id == engine.session_id:
        engine.start_new_session()
        console.print("[cyan]Nova conversa iniciada.[/cyan]")


async def _run(engine: ConversationEngine, printer: _StreamPrinter, operation) -> None:
    start = len(engine.messages)
    console.print("[bold magenta]centralia>[/bold magenta] ", end="")
    await operation
    streamed = printer.flushed
    printer.reset()

    for message in engine.messages[start:]:
        if message.role is not MessageRole.ASSISTANT:
            continue
        remainder = message.content
        if streamed and remainder.startswith(streamed):
            remainder = remainder[len(streamed) :].lstrip("\n")
            streamed = ""
        if remainder:
            console.print(remainder, markup=False, highlight=False)
        if message.interactive:
            console.print(render_elements(message.interactive))

    if engine.status is ConversationStatus.ERROR:
        console.print(f"[red]Erro: {engine.error}[/red]")
        engine.clear_error()


async def _resolve_gates(engine: ConversationEngine, printer: _StreamPrinter) -> None:
    while True:
        if engine.pending_action is not None:
            _print_pending_action(engine.pending_action)
            confirmed = await asyncio.to_thread(Confirm.ask, "Confirmar esta ação?", default=False)
            await _run(engine, printer, engine.confirm() if confirmed else engine.reject())
        elif engine.data_request is not None:
            values = await _ask_data(engine.data_request)
            if values is None:
                await engine.cancel_data_request()
                console.print(engine.messages[-1].content, markup=False, highlight=False)
                continue
            errors = await _submit(engine, printer, values)
            for name, error in errors.items():
                console.print(f"[red]{name}: {error}[/red]")
        else:
            return


async def _submit(engine: ConversationEngine, printer: _StreamPrinter, values: dict) -> dict[str, str]:
    result: dict[str, str] = {}

    async def submit() -> None:
        result.update(await engine.submit_data(values))

    await _run(engine, printer, submit())
    return result


async def _ask_data(request: DataRequest) -> Optional[dict]:
    console.print(Panel(request.context or "Preciso de mais algumas informações.", title="Dados"))
    console.print("[dim]Deixe em branco para manter o padrão; digite /cancel para cancelar.[/dim]")
    values: dict = request.initial_values()
    for definition in request.fields:
        label = definition.label + ("" if definition.required else " (opcional)")
        choices = [option.value for option in definition.options] if definition.type is FieldType.SELECT else None
        default = values.get(definition.name)
        answer = await asyncio.to_thread(
            Prompt.ask,
            label,
            choices=choices,
            default=str(default) if default not in (None, "") else None,
            show_choices=choices is not None,
        )
        if answer is not None and answer.strip() == "/cancel":
            return None
        values[definition.name] = answer
    return values


def _button_choice(engine: ConversationEngine, text: str) -> Optional[tuple[int, int, str]]:
    if not text.isdigit():
        return None
    for message_index in range(len(engine.messages) - 1, -1, -1):
        message = engine.messages[message_index]
        if message.role is not MessageRole.ASSISTANT:
            continue
        for element_index, element in enumerate(message.interactive):
            if isinstance(element, ButtonsElement) and not element.answered:
                enabled = [b for b in element.buttons if not b.disabled]
                position = int(text) - 1
                if 0 <= position < len(enabled):
                    return message_index, element_index, enabled[position].value
        return None
    return None


def _print_message(message: Message) -> None:
    if message.role is MessageRole.USER:
        console.print(f"[bold green]você>[/bold green] {message.content}", highlight=False)
    elif message.role is MessageRole.ASSISTANT:
        console.print("[bold magenta]centralia>[/bold magenta] ", end="")
        console.print(message.content, markup=False, highlight=False)
        if message.interactive:
            console.print(render_elements(message.interactive))


def _print_pending_action(action: PendingAction) -> None:
    table = Table(show_header=False, box=None)
    table.add_column("Campo", style="cyan")
    table.add_column("Valor")
    for key, value in action.action_data.items():
        shown = format_brl(value) if key in ("valor", "amount") and isinstance(value, (int, float)) else str(value)
        table.add_row(key, shown)
    title = f"Ação pendente: {action.action_type}"
    body = action.preview_message or ""
    console.print(Panel(table, title=title, subtitle=body or None))


def _print_sessions(sessions, settings: Settings) -> None:
    if not sessions:
        console.print("  [yellow]Nenhuma conversa salva[/yellow]")
        return
    table = Table(title="Conversas")
    table.add_column("ID", style="cyan", no_wrap=True)
    table.add_column("Título", style="green")
    table.add_column("Mensagens", justify="right")
    table.add_column("Atualizada", style="yellow")
    table.add_column("Última mensagem", style="dim")
    for session in sessions:
        table.add_row(
            session.session_id,
            session.title or settings.chat.default_title,
            str(session.message_count),
            session.updated_at.strftime("%d/%m/%Y %H:%M"),
            session.last_message_preview or "",
        )
    console.print(table)


@sessions_app.command("list")
def sessions_list(
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
    search: Optional[str] = typer.Option(None, "--search", "-q", help="Filter by title or preview"),
    limit: Optional[int] = typer.Option(None, "--limit", "-l", help="Maximum sessions to show"),
):
    """
    List stored conversations, most recent first.
    """
    settings = _load(env_file)

    async def run():
        try:
            return await get_session_service(settings).list_sessions(search=search, limit=limit)
        finally:
            if settings.session_store.is_postgres():
                await dispose_engine()

    _print_sessions(asyncio.run(run()), settings)


@sessions_app.command("rename")
def sessions_rename(
    session_id: str = typer.Argument(..., help="Session ID"),
    title: str = typer.Argument(..., help="New title"),
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
):
    """
    Rename a stored conversation.
    """
    settings = _load(env_file)

    async def run():
        try:
            return await get_session_service(settings).rename_session(session_id, title)
        finally:
            if settings.session_store.is_postgres():
                await dispose_engine()

    try:
        session = asyncio.run(run())
    except (ChatError, ValueError) as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print(f"[green]Conversa renomeada:[/green] {session.title}")


@sessions_app.command("delete")
def sessions_delete(
    session_id: str = typer.Argument(..., help="Session ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
):
    """
    Delete a stored conversation and its messages.
    """
    settings = _load(env_file)
    if not yes and not typer.confirm(f"Excluir a conversa {session_id}?"):
        raise typer.Abort()

    async def run():
        try:
            await get_session_service(settings).delete_session(session_id)
        finally:
            if settings.session_store.is_postgres():
                await dispose_engine()

    try:
        asyncio.run(run())
    except ChatError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)
    console.print("[green]Conversa excluída[/green]")


@app.command()
def config(
    env_file: Optional[Path] = typer.Option(None, "--env", "-e", help="Path to .env file"),
):
    """
    Show current configuration.
    """
    settings = load_settings(env_file) if env_file else get_settings()

    console.print("\n[bold blue]Centralia Configuration[/bold blue]")
    console.print("-" * 40)

    console.print("\n[cyan]Transport:[/cyan]")
    console.print(f"  URL: {settings.transport.url}")
    console.print(f"  Auth token: {'set' if settings.transport.auth_token else 'not set'}")
    console.print(f"  Timeout: {settings.transport.timeout}s (connect {settings.transport.connect_timeout}s)")

    console.print("\n[cyan]Session store:[/cyan]")
    console.print(f"  Backend: {settings.session_store.backend}")
    if settings.session_store.is_postgres():
        console.print(f"  PostgreSQL: {'set' if settings.session_store.postgres_uri else '[red]missing[/red]'}")
    else:
        console.print(f"  Max sessions: {settings.session_store.max_sessions}")

    console.print("\n[cyan]Chat:[/cyan]")
    console.print(f"  Title max length: {settings.chat.title_max_length}")
    console.print(f"  Default title: {settings.chat.default_title}")

    console.print("\n[cyan]Logging:[/cyan]")
    console.print(f"  Level: {settings.log_level}")
    console.print(f"  File: {settings.log_file or '-'}")


@app.command()
def version():
    """
    Show version information.
    """
    from centralia import __version__

    console.print(f"Centralia version: [green]{__version__}[/green]")


def main():
    """Main entry point."""
    app()


if __name__ == "__main__":
    main()
