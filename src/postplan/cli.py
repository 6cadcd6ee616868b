from __future__ import annotations

import json
import logging
import pathlib
from datetime import date
from typing import Any, NoReturn, Optional

import anyio
import httpx
import typer
from pydantic import ValidationError

from postplan.observability.metrics import get_metrics_registry
from postplan.providers import (
    GenerationProvider,
    ProviderUnavailableError,
    StaticDocumentProvider,
    create_provider,
)
from postplan.schedule.accounts import AccountDirectory
from postplan.schedule.request import ScheduleRequest
from postplan.schedule.session import EmptySchedulePlanError, open_schedule_session
from postplan.settings import get_settings
from postplan.streaming.assembler import ScheduleAssembler, ScheduleStreamError, stream_schedule
from postplan.streaming.events import ErrorEvent, RecordEvent, ScheduleEvent, StartEvent, encode_sse

app = typer.Typer(no_args_is_help=True, help="Streaming schedule generation")


def _fail(message: str, code: int = 1) -> NoReturn:
    typer.echo(f"Error: {message}", err=True)
    raise typer.Exit(code)


def _load_request(path: pathlib.Path) -> ScheduleRequest:
    try:
        return ScheduleRequest.model_validate_json(path.read_text(encoding="utf-8"))
    except OSError as exc:
        _fail(f"Cannot read {path}: {exc}")
    except ValidationError as exc:
        _fail(f"Invalid schedule request in {path}: {exc.errors()[0]['msg']}")


def _resolve_provider(
    provider: Optional[str], document: Optional[pathlib.Path], chunk_size: Optional[int]
) -> GenerationProvider:
    settings = get_settings()
    if document is not None:
        if not document.is_file():
            _fail(f"Document not found: {document}")
        return StaticDocumentProvider.from_file(
            document, chunk_size=chunk_size or settings.STATIC_CHUNK_SIZE
        )
    try:
        return create_provider(settings, override=provider)
    except (ProviderUnavailableError, ValueError) as exc:
        _fail(str(exc))


def _print_progress(event: ScheduleEvent, assembler: ScheduleAssembler) -> None:
    if isinstance(event, StartEvent):
        typer.echo(f"Generating {event.total_hint} days...", err=True)
    elif isinstance(event, RecordEvent):
        done, total = assembler.progress
        line = f"  [{done}/{total or '?'}] day {event.index}"
        if isinstance(event.value, dict) and event.value.get("date"):
            line = f"{line} ({event.value['date']})"
        typer.echo(line, err=True)


@app.command("generate")
def generate(
    request_file: pathlib.Path = typer.Argument(..., help="JSON file with the schedule request"),
    provider: Optional[str] = typer.Option(
        None, "--provider", "-p", help="Provider override (anthropic/openai/static)"
    ),
    document: Optional[pathlib.Path] = typer.Option(
        None, "--document", help="Replay a pre-generated document instead of calling a model"
    ),
    chunk_size: Optional[int] = typer.Option(
        None, "--chunk-size", min=1, help="Fragment size when replaying --document"
    ),
    accounts: Optional[pathlib.Path] = typer.Option(
        None, "--accounts", help="Accounts YAML (defaults to POSTPLAN_ACCOUNTS_FILE)"
    ),
    sse: bool = typer.Option(False, "--sse", help="Print SSE frames instead of JSON lines"),
) -> None:
    """Run one generation session locally and print its events."""
    settings = get_settings()
    req = _load_request(request_file)

    directory = AccountDirectory.from_yaml(accounts or pathlib.Path(settings.ACCOUNTS_FILE))
    account = directory.get(req.account_id)
    if account is None:
        _fail(f"Account '{req.account_id}' not found")

    source = _resolve_provider(provider, document, chunk_size)
    try:
        session = open_schedule_session(
            req,
            account,
            source,
            settings,
            start=date.today(),
            metrics=get_metrics_registry(),
        )
    except EmptySchedulePlanError as exc:
        _fail(str(exc))

    async def _run() -> bool:
        failed = False
        async for event in session.events():
            if sse:
                typer.echo(encode_sse(event), nl=False)
            else:
                typer.echo(event.model_dump_json())
            failed = failed or isinstance(event, ErrorEvent)
        return failed

    if anyio.run(_run):
        raise typer.Exit(1)


@app.command("assemble")
def assemble(
    file: pathlib.Path = typer.Argument(..., help="Saved SSE transcript or raw document"),
    raw: bool = typer.Option(
        False, "--raw", help="Treat FILE as a raw generation document instead of SSE"
    ),
    array_key: Optional[str] = typer.Option(
        None, "--array-key", help="Field holding the record array (defaults to settings)"
    ),
) -> None:
    """Rebuild a schedule from a saved stream and print it as JSON."""
    key = array_key or get_settings().ARRAY_KEY
    try:
        text = file.read_text(encoding="utf-8")
    except OSError as exc:
        _fail(f"Cannot read {file}: {exc}")

    assembler = ScheduleAssembler()
    if raw:
        assembler.load_document(text, array_key=key)
    else:
        assembler.feed(text)
        assembler.close()

    if assembler.skipped_frames:
        typer.echo(f"Skipped {assembler.skipped_frames} malformed frame(s)", err=True)
    try:
        result = assembler.result()
    except ScheduleStreamError as exc:
        _fail(exc.message)
    typer.echo(json.dumps(result.as_dict(key), indent=2, ensure_ascii=False))


@app.command("watch")
def watch(
    url: str = typer.Argument(..., help="Generate endpoint, e.g. http://127.0.0.1:8000/api/v1/schedule/generate"),
    request_file: pathlib.Path = typer.Argument(..., help="JSON file with the schedule request"),
    out: Optional[pathlib.Path] = typer.Option(
        None, "--out", "-o", help="Write the final schedule to this file"
    ),
    timeout: float = typer.Option(300.0, "--timeout", help="Read timeout in seconds"),
) -> None:
    """Stream a schedule from a running server and show progress."""
    try:
        payload: dict[str, Any] = json.loads(request_file.read_text(encoding="utf-8"))
    except (OSError, ValueError) as exc:
        _fail(f"Cannot load request {request_file}: {exc}")

    assembler = ScheduleAssembler()
    assembler.on_event = lambda event: _print_progress(event, assembler)

    async def _run() -> None:
        async with httpx.AsyncClient(timeout=httpx.Timeout(timeout, connect=10.0)) as client:
            await stream_schedule(client, url, payload, assembler=assembler)

    try:
        anyio.run(_run)
        result = assembler.result()
    except ScheduleStreamError as exc:
        _fail(exc.message)
    except httpx.HTTPError as exc:
        _fail(f"Connection failed: {exc}")

    typer.echo(f"Received {len(result.records)} days", err=True)
    rendered = json.dumps(result.as_dict(get_settings().ARRAY_KEY), indent=2, ensure_ascii=False)
    if out is not None:
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(rendered + "\n", encoding="utf-8")
        typer.echo(f"Schedule written to {out}")
    else:
        typer.echo(rendered)


@app.command("serve")
def serve(
    host: Optional[str] = typer.Option(None, "--host", help="Bind host (defaults to settings)"),
    port: Optional[int] = typer.Option(None, "--port", help="Bind port (defaults to settings)"),
    reload: bool = typer.Option(False, "--reload", help="Reload on code changes"),
) -> None:
    """Run the HTTP API with uvicorn."""
    import uvicorn

    settings = get_settings()
    logging.basicConfig(level=logging.INFO)
    uvicorn.run(
        "postplan.api.server:app",
        host=host or settings.API_HOST,
        port=port or settings.API_PORT,
        reload=reload or settings.API_DEBUG,
    )


if __name__ == "__main__":
    app()
