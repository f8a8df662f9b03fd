"""
Interactive mode for the Cedar CLI.

Walks the user through a research run: asks for a goal, shows each
generated cell and asks before moving to the next step.
"""

from typing import Optional

from rich.markdown import Markdown
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.syntax import Syntax
from rich.text import Text

from cedar.cli.utils import (
    console,
    create_table,
    get_icon,
    get_step_color,
    print_error,
    print_info,
    print_success,
)
from cedar.core.cells import Cell
from cedar.core.steps import StepRegistry, StepType
from cedar.core.workflow import RunStatus
from cedar.workflow.research_flow import ResearchFlowController

EXAMPLE_GOALS = [
    "Analyze churn drivers in a subscription business",
    "Compare sorting algorithm performance on nearly sorted data",
    "Estimate the effect of temperature on bike rental demand",
]


def show_welcome():
    """Display welcome message and introduction."""
    welcome_md = """
# Cedar Research Flow

Cedar takes a research goal through ten steps:

* **Title, references and abstract** from the research backend
* **Plan, data and analysis code** derived from the research plan
* **Execution results and evaluation** of the generated script
* **A final write-up** saved to the project

You confirm each step before the next one is generated.
"""
    console.print()
    console.print(
        Panel(
            Markdown(welcome_md),
            title=f"[bright_blue]{get_icon('rocket')} Cedar[/bright_blue]",
            border_style="bright_blue",
        )
    )
    console.print()


def show_steps(registry: StepRegistry):
    """Print the pipeline as a table."""
    table = create_table(
        title="Research Pipeline",
        columns=["#", "Step", "Title", "Description"],
        show_lines=False,
    )
    for i, step in enumerate(registry):
        table.add_row(
            str(i),
            Text(step.type.value, style=get_step_color(step.type)),
            step.title,
            step.description,
        )
    console.print(table)


def get_research_goal() -> Optional[str]:
    """
    Prompt user for a research goal.

    Returns:
        The goal, or None if the user gave up
    """
    console.print(f"[h3]{get_icon('book')} Example goals[/h3]")
    for i, example in enumerate(EXAMPLE_GOALS, 1):
        console.print(f"  [muted]{i}.[/muted] [italic]{example}[/italic]")
    console.print()

    while True:
        goal = Prompt.ask("[cyan]Research goal[/cyan]")

        if not goal or not goal.strip():
            print_error("Goal cannot be empty.")
            if not Confirm.ask("Try again?", default=True):
                return None
            continue

        return goal.strip()


def render_cell(cell: Cell, registry: StepRegistry):
    """Show one cell as a panel. Fallback content is flagged."""
    step_index = registry.index_of(cell.type)
    step = registry.step_at(step_index)
    color = get_step_color(cell.type)

    if cell.type == StepType.CODE:
        body = Syntax(cell.content, "python", theme="ansi_dark", line_numbers=False)
    elif cell.type == StepType.WRITEUP and not cell.degraded:
        body = Markdown(cell.content)
    else:
        body = Text(cell.content)

    title = f"[{color}]{step_index}/{len(registry) - 1} {step.title}[/{color}]"
    subtitle = None
    border_style = color
    if cell.degraded:
        title += f" [warning]{get_icon('warning')} fallback[/warning]"
        subtitle = f"[muted]{cell.error or 'generation failed'}[/muted]"
        border_style = "yellow"

    console.print(Panel(body, title=title, subtitle=subtitle, border_style=border_style))


def show_summary(controller: ResearchFlowController):
    """Print run statistics after the flow stops."""
    stats = controller.get_statistics()

    table = create_table(title="Run Summary", columns=["Metric", "Value"], show_lines=True)
    table.add_row("Status", stats["status"])
    table.add_row("Cells", f"{stats['cells']}/{stats['total_steps']}")
    project = controller.project
    table.add_row("Project", project.id if project else "[muted]none[/muted]")

    degraded = stats["degraded_steps"]
    table.add_row(
        "Fallback steps",
        f"[warning]{', '.join(degraded)}[/warning]" if degraded else "[success]none[/success]",
    )
    table.add_row("Routing calls", str(stats["routing_calls"]))
    table.add_row(
        "Routing failures",
        f"[error]{stats['routing_failures']}[/error]" if stats["routing_failures"] else "0",
    )

    console.print()
    console.print(table)
    for message in stats["routing_failure_messages"]:
        console.print(f"  [muted]- {message}[/muted]")


async def run_flow(
    controller: ResearchFlowController,
    goal: str,
    auto: bool = False
) -> RunStatus:
    """
    Run a research flow in the terminal.

    Args:
        controller: Controller to drive
        goal: Research goal
        auto: Advance without asking for confirmation

    Returns:
        RunStatus: Final status of the run
    """
    registry = controller.registry

    with console.status("[cyan]Generating title...[/cyan]"):
        await controller.submit_goal(goal)
    for cell in controller.cells:
        render_cell(cell, registry)

    if controller.project is None:
        print_error("No project was created; artifacts will not be saved.")

    while controller.status == RunStatus.RUNNING:
        step = controller.current_step
        next_step = registry.step_at(controller.run.current_step_index + 1)

        if not auto:
            prompt = f"Continue to {next_step.title}?" if next_step else "Finish research?"
            if not Confirm.ask(f"[cyan]{prompt}[/cyan]", default=True):
                controller.cancel()
                break

        label = next_step.title if next_step else "write-up"
        with console.status(f"[cyan]Saving {step.title} and preparing {label}...[/cyan]"):
            cell = await controller.advance()
        if cell is not None:
            render_cell(cell, registry)

    return controller.status


async def run_interactive_mode(
    controller: ResearchFlowController,
    goal: Optional[str] = None,
    auto: bool = False
) -> RunStatus:
    """
    Full interactive session: welcome, goal prompt, flow, summary.

    Returns:
        RunStatus: Final status of the run (IDLE if no goal was given)
    """
    try:
        if not auto:
            show_welcome()

        if goal is None:
            goal = get_research_goal()
            if goal is None:
                return RunStatus.IDLE

        print_info(goal, title="Research Goal")
        status = await run_flow(controller, goal, auto=auto)

    except KeyboardInterrupt:
        controller.cancel()
        console.print("\n[warning]Operation cancelled by user[/warning]")
        status = controller.status

    show_summary(controller)

    if status == RunStatus.COMPLETED:
        print_success("Research flow completed.", title="Done")
    elif status == RunStatus.CANCELLED:
        console.print("[warning]Research cancelled. Artifacts saved so far remain in the project.[/warning]")

    return status
