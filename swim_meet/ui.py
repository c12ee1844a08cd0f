"""
Terminal rendering for dives, workflows and critiques.
"""

from typing import Optional

from rich.box import ROUNDED
from rich.console import Console, Group, RenderableType
from rich.markdown import Markdown
from rich.panel import Panel
from rich.spinner import Spinner
from rich.table import Table
from rich.text import Text

from .models import Conversation, Response, ResponseStatus, VerificationResult
from .orchestration import WorkflowStatus
from .providers import ProviderStatus, get_display_name
from .stats import ProviderStats

console = Console()

AWARD_ICONS = {"gold": "🥇", "silver": "🥈", "bronze": "🥉"}

STATUS_STYLES = {
    "connected": "green",
    "setup_required": "yellow",
    "error": "red",
    "disabled": "dim",
}


class WorkflowRenderer:
    """Renders the step list of a work-mode workflow."""
    def __init__(self, status: WorkflowStatus, title: str = "Work Workflow"):
        self.status = status
        self.title = title

    def __rich__(self) -> RenderableType:
        table = Table(box=None, show_header=False, padding=(0, 2))
        table.add_column("Status", width=3)
        table.add_column("Step")
        table.add_column("Objective")

        for step in self.status.steps:
            icon = "○"
            style = "dim"

            if step.completed:
                icon = "✓"
                style = "green"
            elif step.status == ResponseStatus.ERROR.value:
                icon = "✗"
                style = "red"
            elif step.step_number == self.status.current_step + 1 and self.status.in_progress:
                icon = "●"
                style = "yellow"

            table.add_row(
                Text(icon, style=style),
                Text(f"{step.step_number}. {get_display_name(step.provider)}", style=style),
                Text(step.objective, style=style),
            )

        subtitle = f"{self.status.completed_steps}/{self.status.total_steps} steps"
        return Panel(
            table,
            title=f"[bold]{self.title}[/bold]",
            subtitle=f"[dim]{subtitle}[/dim]",
            border_style="cyan",
            box=ROUNDED,
            padding=(0, 1)
        )


class DiveMonitor:
    """Renders the live state of a dive's provider calls."""
    def __init__(self, title: str = "Dive"):
        self.responses: dict[str, Response] = {}
        self.spinner = Spinner("dots", style="cyan")
        self.title = title

    def update(self, responses: list[Response]):
        for response in responses:
            self.responses[response.id] = response

    @property
    def finished(self) -> bool:
        return all(r.status.is_terminal for r in self.responses.values())

    def __rich__(self) -> RenderableType:
        table = Table(box=None, show_header=False, padding=(0, 2))
        table.add_column("Status", width=3)
        table.add_column("Provider")
        table.add_column("State", style="dim")

        for response in sorted(self.responses.values(), key=lambda r: r.provider):
            if response.status == ResponseStatus.COMPLETE:
                icon = Text("✓", style="green")
                state = f"{len(response.content)} chars"
            elif response.status == ResponseStatus.ERROR:
                icon = Text("✗", style="red")
                state = response.content[:60]
            else:
                icon = self.spinner
                state = "waiting"
            table.add_row(icon, get_display_name(response.provider), state)

        return Panel(table, title=f"[bold]{self.title}[/bold]", border_style="blue", box=ROUNDED)


def response_panel(response: Response) -> Panel:
    title = f"{get_display_name(response.provider)}"
    if response.work_step:
        title += f" [dim]({response.work_step})[/dim]"
    if response.award in AWARD_ICONS:
        title += f" {AWARD_ICONS[response.award]}"

    if response.status == ResponseStatus.ERROR:
        body: RenderableType = Text(response.content, style="red")
        border = "red"
    elif response.status == ResponseStatus.PENDING:
        body = Text("Waiting for response...", style="dim")
        border = "yellow"
    else:
        body = Markdown(response.content)
        border = "blue"

    return Panel(
        body,
        title=title,
        subtitle=f"[dim]{response.id}[/dim]",
        title_align="left",
        border_style=border,
        box=ROUNDED,
        padding=(0, 1)
    )


def verification_panel(result: VerificationResult) -> Panel:
    table = Table(box=None, show_header=False, padding=(0, 1))
    table.add_column("Field", style="cyan", width=16)
    table.add_column("Value")

    score = result.accuracy_score
    score_style = "green" if score >= 8 else "yellow" if score >= 5 else "red"
    table.add_row("Accuracy", Text(f"{score}/10", style=score_style))

    for label, items in (
        ("Factual errors", result.factual_errors),
        ("Strengths", result.strengths),
        ("Weaknesses", result.weaknesses),
        ("Recommendations", result.recommendations),
    ):
        if items:
            table.add_row(label, "\n".join(f"• {item}" for item in items))

    parts: list[RenderableType] = [table, Text(" "), Markdown(result.overall_assessment)]
    if result.parse_failed:
        parts.append(Text("(unstructured critique)", style="dim"))

    return Panel(
        Group(*parts),
        title=f"[yellow]Critique by {get_display_name(result.verifier)}[/yellow]",
        title_align="left",
        border_style="yellow",
        box=ROUNDED,
        padding=(0, 1)
    )


class SwimMeetUI:
    def print_banner(self):
        console.print(Panel(
            "[bold white]Swim Meet[/bold white] [dim]- one query, many AI providers[/dim]",
            border_style="bold blue",
            box=ROUNDED,
        ))

    def print_responses(self, responses: list[Response]):
        for response in responses:
            console.print(response_panel(response))

    def print_verification(self, result: VerificationResult):
        console.print(verification_panel(result))

    def print_workflow(self, status: WorkflowStatus, show_document: bool = True):
        if status.status == "no_workflow":
            console.print("[dim]This conversation has no workflow.[/dim]")
            return
        console.print(WorkflowRenderer(status))
        if show_document and status.collaborative_doc:
            console.print(Panel(
                Markdown(status.collaborative_doc),
                title="[bold]Collaborative Document[/bold]",
                border_style="green",
                box=ROUNDED,
            ))

    def print_provider_status(self, statuses: list[ProviderStatus]):
        table = Table(title="Providers", box=ROUNDED)
        table.add_column("ID", style="cyan")
        table.add_column("Name")
        table.add_column("Company", style="dim")
        table.add_column("Status")
        table.add_column("Detail", style="dim")

        for status in statuses:
            style = STATUS_STYLES.get(status.status.value, "white")
            table.add_row(
                status.id,
                status.name,
                status.company,
                Text(status.status.value, style=style),
                (status.error or "")[:60],
            )
        console.print(table)

    def print_conversations(self, conversations: list[Conversation]):
        if not conversations:
            console.print("[dim]No conversations yet.[/dim]")
            return

        table = Table(title="History", box=ROUNDED)
        table.add_column("ID", style="cyan", no_wrap=True)
        table.add_column("Mode")
        table.add_column("Title")
        table.add_column("Created", style="dim")

        for conversation in conversations:
            table.add_row(
                conversation.id,
                conversation.mode.value,
                conversation.title,
                conversation.created_at[:19],
            )
        console.print(table)

    def print_stats(self, stats: list[ProviderStats]):
        if not stats:
            console.print("[dim]No responses recorded yet.[/dim]")
            return

        table = Table(title="📊 Provider Statistics", box=ROUNDED)
        table.add_column("Provider", style="cyan")
        table.add_column("Responses", justify="right")
        table.add_column("Success", justify="right")
        table.add_column("🥇", justify="right")
        table.add_column("🥈", justify="right")
        table.add_column("🥉", justify="right")
        table.add_column("Verified", justify="right")

        for s in stats:
            table.add_row(
                get_display_name(s.provider),
                f"{s.complete_responses}/{s.total_responses}",
                f"{s.success_rate}%",
                str(s.awards["gold"]),
                str(s.awards["silver"]),
                str(s.awards["bronze"]),
                str(s.verified_responses),
            )
        console.print(table)

    def print_message(self, title: str, content: str, style: str = "blue"):
        console.print(Panel(
            Markdown(content),
            title=title,
            title_align="left",
            border_style=style,
            box=ROUNDED,
            padding=(0, 1)
        ))

    def print_error(self, error: str, hint: Optional[str] = None):
        console.print()
        console.print(f"[red]╭─ ✗ Error ─{'─' * 48}[/red]")
        for line in error.split("\n")[:10]:
            console.print(f"[red]│[/red] {line[:90]}")
        if hint:
            console.print(f"[red]│[/red] [dim]{hint}[/dim]")
        console.print(f"[red]╰──────────────────────────────────────────────────[/red]")


ui = SwimMeetUI()
