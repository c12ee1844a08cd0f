"""
Main CLI entry point for Swim Meet.
"""

import argparse
import asyncio
import sys

from rich.console import Console
from rich.live import Live
from rich.panel import Panel

from .config import (
    Config,
    create_sample_config,
    get_config_path,
    get_store_path,
    load_config,
)
from .errors import SwimMeetError
from .logging_config import resolve_level, setup_logging
from .models import Mode, QueryRequest
from .orchestration import Orchestrator, Submission
from .orchestration.verifier import FACT_CHECKER, REPLY_PROVIDER
from .providers import PROVIDER_DEFINITIONS
from .store import JsonFileStore
from .ui import DiveMonitor, WorkflowRenderer, ui

console = Console()

POLL_INTERVAL = 0.2


def show_config(config: Config):
    configured = config.get_configured_providers()
    config_text = f"""
[bold]Configuration:[/bold]
  Config file: [cyan]{get_config_path()}[/cyan]
  Store: [cyan]{get_store_path(config)}[/cyan]
  User: [cyan]{config.user_id}[/cyan]
  Default providers: [cyan]{', '.join(config.default_providers)}[/cyan]
  Max tokens: [cyan]{config.max_tokens}[/cyan]
  Log level: [cyan]{config.log_level}[/cyan]

[bold]Providers:[/bold]
"""
    for provider_id, definition in PROVIDER_DEFINITIONS.items():
        provider_config = config.get_provider_config(provider_id)
        model = provider_config.model_name or definition.model_name or "-"
        if not definition.enabled:
            state = "[dim]not available[/dim]"
        elif provider_id in configured:
            state = "[green]key set[/green]"
        else:
            state = "[yellow]no key[/yellow]"
        config_text += f"  {definition.name} ({provider_id}): {model} {state}\n"

    console.print(Panel(config_text, title="Swim Meet", border_style="cyan"))


def build_orchestrator(config: Config) -> Orchestrator:
    store = JsonFileStore(get_store_path(config))
    return Orchestrator(store, config)


async def ensure_user(orchestrator: Orchestrator, config: Config) -> str:
    user = await orchestrator.store.get_user(config.user_id)
    if user is None:
        user = await orchestrator.store.create_user(config.user_id, user_id=config.user_id)
    return user.id


async def watch_dive(orchestrator: Orchestrator, submission: Submission):
    monitor = DiveMonitor(title=f"Dive {submission.conversation_id[:8]}")
    monitor.update(submission.responses)

    async def refresh():
        responses = await orchestrator.list_responses(submission.conversation_id)
        monitor.update([r for r in responses if r.id in monitor.responses])

    with Live(monitor, console=console, refresh_per_second=10, transient=True):
        # a call that died without a terminal status leaves no task behind
        while not monitor.finished and orchestrator.tasks.pending:
            await asyncio.sleep(POLL_INTERVAL)
            await refresh()

    await orchestrator.wait()
    await refresh()
    ui.print_responses(sorted(monitor.responses.values(), key=lambda r: r.provider))


async def watch_workflow(orchestrator: Orchestrator, conversation_id: str):
    renderer = WorkflowRenderer(await orchestrator.workflow_status(conversation_id))

    with Live(renderer, console=console, refresh_per_second=10, transient=True):
        while orchestrator.workflow.is_running(conversation_id):
            await asyncio.sleep(POLL_INTERVAL)
            renderer.status = await orchestrator.workflow_status(conversation_id)

    await orchestrator.wait()
    status = await orchestrator.workflow_status(conversation_id)
    ui.print_workflow(status)

    failed = [s for s in status.steps if s.status == "error" and not s.completed]
    if failed:
        console.print(
            f"[yellow]Step {failed[0].step_number} failed. "
            f"Run [bold]swim-meet continue {conversation_id}[/bold] to retry.[/yellow]"
        )
    console.print(f"[dim]Conversation: {conversation_id}[/dim]")


async def run_command(args, config: Config):
    orchestrator = build_orchestrator(config)
    try:
        user_id = await ensure_user(orchestrator, config)

        if args.command == "providers":
            ui.print_provider_status(await orchestrator.probe_providers(user_id))

        elif args.command == "dive":
            request = QueryRequest(
                query=args.query,
                selected_providers=args.providers or config.default_providers,
                mode=Mode.DIVE,
                conversation_id=args.conversation,
            )
            submission = await orchestrator.submit(request, user_id)
            await watch_dive(orchestrator, submission)
            console.print(f"[dim]Conversation: {submission.conversation_id}[/dim]")

        elif args.command == "work":
            request = QueryRequest(
                query=args.query,
                selected_providers=args.providers or config.default_providers,
                mode=Mode.WORK,
            )
            submission = await orchestrator.submit(request, user_id)
            await watch_workflow(orchestrator, submission.conversation_id)

        elif args.command == "continue":
            response = await orchestrator.continue_workflow(args.conversation_id, user_id)
            if response is None:
                console.print("[green]Workflow is already complete.[/green]")
                ui.print_workflow(await orchestrator.workflow_status(args.conversation_id))
            else:
                await watch_workflow(orchestrator, args.conversation_id)

        elif args.command == "verify":
            with console.status(f"[cyan]{args.verifier} is reviewing the response...[/cyan]"):
                result = await orchestrator.verify(args.response_id, args.verifier, user_id)
            ui.print_verification(result)

        elif args.command == "share":
            with console.status("[cyan]Sharing critique...[/cyan]"):
                reply = await orchestrator.share_critique(args.response_id, user_id)
            ui.print_message("Reply to critique", reply, style="magenta")

        elif args.command == "fact-check":
            with console.status(f"[cyan]{args.checker} is fact-checking...[/cyan]"):
                report = await orchestrator.fact_check(args.response_id, user_id, checker=args.checker)
            ui.print_message(f"Fact-check by {args.checker}", report, style="yellow")

        elif args.command == "reply":
            with console.status("[cyan]Drafting a follow-up...[/cyan]"):
                reply = await orchestrator.generate_reply(
                    args.response_id, user_id, context=args.context, provider=args.provider
                )
            ui.print_message("Suggested follow-up", reply, style="green")

        elif args.command == "award":
            response = await orchestrator.award(args.response_id, args.award)
            console.print(f"[green]Awarded {response.award} to {response.provider}.[/green]")

        elif args.command == "show":
            responses = await orchestrator.list_responses(args.conversation_id)
            status = await orchestrator.workflow_status(args.conversation_id)
            if status.status == "no_workflow":
                ui.print_responses(responses)
            else:
                ui.print_workflow(status)
            for response in responses:
                latest = response.latest_verification
                if latest:
                    console.print(f"[dim]{response.provider} {response.id}[/dim]")
                    ui.print_verification(latest)

        elif args.command == "history":
            ui.print_conversations(await orchestrator.list_conversations(user_id))

        elif args.command == "stats":
            ui.print_stats(await orchestrator.provider_stats())

    finally:
        await orchestrator.wait()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="swim-meet",
        description="Swim Meet - send one query to many AI providers",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("init", help="Create a sample configuration file")
    subparsers.add_parser("config", help="Show current configuration")
    subparsers.add_parser("providers", help="Check which providers are reachable")

    dive = subparsers.add_parser("dive", help="Ask several providers the same question at once")
    dive.add_argument("query", help="The question to ask")
    dive.add_argument("--providers", "-p", nargs="+", help="Providers to query")
    dive.add_argument("--conversation", help="Add to an existing conversation")

    work = subparsers.add_parser("work", help="Chain providers through a collaborative workflow")
    work.add_argument("query", help="The problem to work on")
    work.add_argument("--providers", "-p", nargs="+", help="Providers in step order")

    cont = subparsers.add_parser("continue", help="Resume a stalled workflow")
    cont.add_argument("conversation_id")

    verify = subparsers.add_parser("verify", help="Have one provider critique a response")
    verify.add_argument("response_id")
    verify.add_argument("--verifier", required=True, help="Provider that performs the critique")

    share = subparsers.add_parser("share", help="Send the latest critique back to the original provider")
    share.add_argument("response_id")

    fact_check = subparsers.add_parser("fact-check", help="Fact-check a response")
    fact_check.add_argument("response_id")
    fact_check.add_argument("--checker", default=FACT_CHECKER, help="Provider that checks the facts")

    reply = subparsers.add_parser("reply", help="Draft a follow-up question to a response")
    reply.add_argument("response_id")
    reply.add_argument("--context", help="Extra context for the follow-up")
    reply.add_argument("--provider", default=REPLY_PROVIDER, help="Provider that drafts the reply")

    award = subparsers.add_parser("award", help="Award a response (gold, silver, bronze)")
    award.add_argument("response_id")
    award.add_argument("award", help="Award tag")

    show = subparsers.add_parser("show", help="Show a conversation")
    show.add_argument("conversation_id")

    subparsers.add_parser("history", help="List past conversations")
    subparsers.add_parser("stats", help="Per-provider statistics")

    return parser


def main():
    parser = build_parser()
    args = parser.parse_args()

    if args.command == "init":
        create_sample_config()
        console.print(f"[green]Created config at {get_config_path()}[/green]")
        console.print("[dim]Edit it to add your API keys.[/dim]")
        return

    config = load_config()
    setup_logging(resolve_level(args.verbose, config.log_level))

    if args.command == "config":
        show_config(config)
        return

    if args.command in ("dive", "work"):
        ui.print_banner()
    if args.command in ("dive", "work") and not config.get_configured_providers():
        console.print("[yellow]No API keys configured; every provider will report setup required.[/yellow]")
        console.print("[dim]Run swim-meet init, then edit the config file.[/dim]")

    try:
        asyncio.run(run_command(args, config))
    except SwimMeetError as e:
        ui.print_error(str(e))
        sys.exit(1)
    except KeyboardInterrupt:
        console.print("\n[cyan]Interrupted.[/cyan]")
        sys.exit(130)


if __name__ == "__main__":
    main()
