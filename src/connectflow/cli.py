"""Typer CLI entrypoint for connection flows."""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Any, Optional

import typer
import yaml

from .container import ConnectionsContainer, create_container
from .core import ApprovalOutcome, RankedCandidate
from .flow import AuditingNavigator, AuditLogger
from .logging import LOG_FORMATS, bind_command, configure_logging
from .navigation import ApprovalSignal, NavigationHost, ResultsHandoff
from .schemas import Question

app = typer.Typer(help="Guided matching and guardian approval CLI.")


class ConsoleNavigator:
    """Navigation host rendering terminal outcomes on the console."""

    def __init__(self) -> None:
        self.last_signal: ApprovalSignal | None = None
        self.aborted = False

    def show_results(self, handoff: ResultsHandoff) -> None:
        for warning in handoff.warnings:
            typer.echo(f"Warning: {warning}", err=True)
        results = handoff.results
        if results.is_empty:
            typer.echo("No matching professionals found.")
            return
        primary = results.primary
        typer.echo("Your best match:")
        typer.echo(_format_candidate(primary))
        if results.secondary:
            typer.echo("Other matches:")
            for entry in results.secondary:
                typer.echo(_format_candidate(entry))

    def approval_decided(self, signal: ApprovalSignal) -> None:
        self.last_signal = signal
        if signal is ApprovalSignal.APPROVED:
            typer.echo("Guardian approved. Access granted.")
        else:
            typer.echo("Guardian has not approved. Access not granted.")

    def abort(self, message: str | None = None) -> None:
        self.aborted = True
        typer.echo(message or "Cancelled.", err=bool(message))


def _format_candidate(entry: RankedCandidate) -> str:
    candidate = entry.candidate
    parts = [f"  {candidate.display_name or candidate.id} ({entry.match_percentage}% match)"]
    if candidate.specialty:
        parts.append(candidate.specialty)
    if entry.price_label:
        parts.append(entry.price_label)
    return " - ".join(parts)


def _prompt_choice(question: Question, step: int, total: int) -> Optional[str]:
    options = question.option_texts()
    typer.echo(f"[{step}/{total}] {question.prompt}")
    for idx, text in enumerate(options, start=1):
        typer.echo(f"  {idx}. {text}")
    raw = typer.prompt("Choose an option (q to quit)", default="1")
    if raw.strip().lower() == "q":
        return None
    try:
        index = int(raw)
    except ValueError:
        typer.echo("Please enter a number.")
        return ""
    if not 1 <= index <= len(options):
        typer.echo("Please pick one of the listed options.")
        return ""
    return options[index - 1]


def _build(
    command: str,
    config: Optional[Path],
    token: Optional[str],
    base_url: Optional[str],
    log_level: str,
    log_format: str,
    audit_log: Optional[Path],
) -> tuple[ConnectionsContainer, ConsoleNavigator]:
    settings: dict[str, Any] = {}
    if config:
        with config.open("r", encoding="utf-8") as handle:
            loaded = yaml.safe_load(handle) or {}
            if not isinstance(loaded, dict):
                raise typer.BadParameter("Config file must be a YAML object", param_hint="--config")
            settings = loaded
    if base_url:
        settings.setdefault("api", {})["base_url"] = base_url

    if log_format not in LOG_FORMATS:
        raise typer.BadParameter(f"Choose one of: {', '.join(LOG_FORMATS)}", param_hint="--log-format")
    configure_logging(log_level, fmt=log_format)
    bind_command(command)

    console = ConsoleNavigator()
    navigator: NavigationHost = console
    if audit_log:
        navigator = AuditingNavigator(console, AuditLogger(audit_log))
    container = create_container(settings=settings, token=token, navigator=navigator)
    return container, console


ConfigOption = typer.Option(None, exists=True, readable=True, dir_okay=False, help="YAML config path.")
TokenOption = typer.Option(None, envvar="CONNECTFLOW_TOKEN", help="Bearer token for the API.")
BaseUrlOption = typer.Option(None, help="API base URL override.")
LogLevelOption = typer.Option("WARNING", help="Log level for structured logging.")
LogFormatOption = typer.Option("json", help="Log rendering: json or console.")
AuditLogOption = typer.Option(None, dir_okay=False, help="Audit log output (JSONL).")


@app.command()
def interview(
    prompt: str = typer.Argument(..., help="What would you like help with?"),
    question_count: Optional[int] = typer.Option(None, min=1, max=10, help="Number of questions."),
    recommendation_limit: Optional[int] = typer.Option(None, min=1, max=10, help="Number of matches."),
    config: Optional[Path] = ConfigOption,
    token: Optional[str] = TokenOption,
    base_url: Optional[str] = BaseUrlOption,
    log_level: str = LogLevelOption,
    log_format: str = LogFormatOption,
    audit_log: Optional[Path] = AuditLogOption,
) -> None:
    """Answer a short interview and get matched with professionals."""
    container, console = _build("interview", config, token, base_url, log_level, log_format, audit_log)
    settings = container.settings()

    async def _run() -> None:
        flow = container.connections_flow()
        try:
            await flow.run(
                prompt=prompt,
                question_count=question_count or settings.interview.question_count,
                recommendation_limit=recommendation_limit or settings.interview.recommendation_limit,
                chooser=_prompt_choice,
            )
        finally:
            await container.api_client().aclose()

    asyncio.run(_run())
    if console.aborted:
        raise typer.Exit(code=1)


@app.command()
def directory(
    config: Optional[Path] = ConfigOption,
    token: Optional[str] = TokenOption,
    base_url: Optional[str] = BaseUrlOption,
    log_level: str = LogLevelOption,
    log_format: str = LogFormatOption,
) -> None:
    """List suggested professionals from the directory."""
    container, console = _build("directory", config, token, base_url, log_level, log_format, None)

    async def _run() -> None:
        aggregator = container.result_aggregator()
        try:
            results = await aggregator.aggregate([])
        finally:
            await container.api_client().aclose()
        console.show_results(
            ResultsHandoff(
                recommended_professionals=results.candidates,
                answers=[],
                results=results,
                warnings=[results.warning] if results.warning else [],
            )
        )

    asyncio.run(_run())


@app.command()
def approval(
    email: str = typer.Argument(..., help="Guardian email address."),
    config: Optional[Path] = ConfigOption,
    token: Optional[str] = TokenOption,
    base_url: Optional[str] = BaseUrlOption,
    log_level: str = LogLevelOption,
    log_format: str = LogFormatOption,
    audit_log: Optional[Path] = AuditLogOption,
) -> None:
    """Wait for a guardian to approve the account."""
    container, console = _build("approval", config, token, base_url, log_level, log_format, audit_log)

    async def _run() -> None:
        poller = container.approval_poller(guardian_email=email)
        try:
            await poller.mount()
            while not poller.state.is_terminal:
                state = poller.state
                if state.outcome is ApprovalOutcome.TRANSPORT_ERROR and state.last_error:
                    typer.echo(state.last_error, err=True)
                else:
                    typer.echo("Guardian has not approved yet.")
                typer.echo(f"Attempts left: {state.attempts_left}")
                again = await asyncio.to_thread(typer.confirm, "Check again?", default=True)
                if not again:
                    console.abort(None)
                    return
                await poller.check_again()
        finally:
            poller.unmount()
            await container.api_client().aclose()

    asyncio.run(_run())
    if console.last_signal is not ApprovalSignal.APPROVED:
        raise typer.Exit(code=1)


def main() -> None:
    app()


if __name__ == "__main__":
    main()
