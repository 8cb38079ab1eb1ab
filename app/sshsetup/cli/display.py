"""Rich display functions for setup results.

Provides the RC patch results table and the closing summary printed
after a setup run.
"""

from rich.markup import escape
from rich.table import Table

from sshsetup.core.orchestrator import SetupReport
from sshsetup.rc.models import PatchResult, PatchStatus, SkipReason
from sshsetup.utils.formatting import console, create_table, print_info, print_success

_SKIP_MESSAGES: dict[SkipReason, str] = {
    SkipReason.DECLINED: "file not created; add the line manually",
    SkipReason.CONFLICT: "another SSH_AUTH_SOCK line exists; verify manually",
    SkipReason.UNWRITABLE: "file could not be updated",
}


def _status_text(result: PatchResult) -> str:
    if result.status == PatchStatus.APPENDED:
        label = "would append" if result.dry_run else "appended"
        return f"[added]{label}[/added]"
    if result.status == PatchStatus.ALREADY_PRESENT:
        return "[muted]present[/muted]"
    return "[skipped]skipped[/skipped]"


def _message(result: PatchResult) -> str:
    if result.reason is not None:
        return _SKIP_MESSAGES[result.reason]
    if result.created:
        return "new file" if not result.dry_run else "would create file"
    return ""


def create_results_table(results: list[PatchResult]) -> Table:
    """Create a Rich table displaying RC patch results.

    Args:
        results: Patch results, one per shell.

    Returns:
        Rich Table configured for results display.
    """
    table = create_table("Shell RC files")
    table.add_column("Status", width=14, justify="center")
    table.add_column("Shell", style="shell.name", no_wrap=True)
    table.add_column("File", style="path")
    table.add_column("Note")

    for result in results:
        table.add_row(
            _status_text(result),
            result.shell,
            escape(str(result.path)),
            f"[muted]{_message(result)}[/muted]",
        )

    return table


def print_report(report: SetupReport) -> None:
    """Print the results table and a closing summary.

    Args:
        report: Completed setup report.
    """
    if report.results:
        console.print()
        console.print(create_results_table(report.results))

    key_count = len(report.keys)
    console.print()
    console.print(f"  Keys: [bold]{key_count}[/bold]")
    console.print(f"  Agent unit: [path]{escape(str(report.agent_unit))}[/path]")
    console.print(f"  Loader unit: [path]{escape(str(report.loader_unit))}[/path]")
    console.print()

    if report.dry_run:
        print_info("[DRY-RUN] No files were written and no services were started.")
        return

    skipped = sum(1 for r in report.results if r.status == PatchStatus.SKIPPED)
    print_success("SSH agent services enabled and started.")
    if skipped:
        print_info(f"{skipped} RC file(s) need manual attention. Open a new shell afterwards.")
    else:
        print_info("Open a new shell to pick up SSH_AUTH_SOCK.")
