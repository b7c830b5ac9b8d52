"""Interactive branch selection with search, bulk actions and cancel."""

import re
from dataclasses import dataclass, field
from typing import Callable

from rich.console import Console
from rich.prompt import Prompt
from rich.table import Table
from rich.text import Text

HELP_TEXT = (
    "Enter: confirm  |  numbers/ranges (1 3 5-7): toggle  |  a: select all shown  |  "
    "n: select none  |  /TEXT: search (/ alone clears)  |  p REGEX: select matching  |  "
    "r: review  |  >/<: page  |  q or Ctrl+C: cancel"
)


@dataclass
class Choice:
    """One selectable item."""

    value: str
    label: str
    checked: bool = True


@dataclass
class SelectionOutcome:
    """
    One-shot result of an interactive selection.

    Confirmation and cancellation both resolve through here; whichever
    arrives first is kept and every later call is ignored.
    """

    resolved: bool = False
    cancelled: bool = False
    selection: list[str] = field(default_factory=list)

    def confirm(self, selection: list[str]) -> bool:
        if self.resolved:
            return False
        self.resolved = True
        self.selection = list(selection)
        return True

    def cancel(self) -> bool:
        if self.resolved:
            return False
        self.resolved = True
        self.cancelled = True
        return True


def parse_toggle_indexes(text: str, count: int) -> list[int] | None:
    """Parse "1 3 5-7" (1-based) into 0-based indexes; None when malformed."""
    indexes: list[int] = []
    for token in re.split(r"[,\s]+", text.strip()):
        if not token:
            continue
        match = re.fullmatch(r"(\d+)(?:-(\d+))?", token)
        if not match:
            return None
        start = int(match.group(1))
        end = int(match.group(2) or start)
        if start < 1 or end > count or start > end:
            return None
        indexes.extend(range(start - 1, end))
    return indexes


class BranchSelectionPrompt:
    """Checklist prompt rendered with rich."""

    def __init__(
        self,
        console: Console,
        page_size: int = 15,
        ask: Callable[[str], str] | None = None,
    ):
        self.console = console
        self.page_size = page_size
        self._ask = ask or (lambda prompt: Prompt.ask(prompt, console=console, default=""))

    def run(self, choices: list[Choice], message: str = "Select branches to delete:") -> list[str] | None:
        """
        Let the user narrow down the selection.

        Returns:
            Selected values in their original order, or None if cancelled
        """
        outcome = SelectionOutcome()
        selected = {choice.value for choice in choices if choice.checked}
        shown = list(choices)
        search = ""
        page = 0

        self.console.print(f"\n[bold]{message}[/bold] ({len(choices)} items)")
        self.console.print(f"[dim]{HELP_TEXT}[/dim]")

        while not outcome.resolved:
            pages = max(1, -(-len(shown) // self.page_size))
            page = min(page, pages - 1)
            offset = page * self.page_size
            self._render(shown[offset : offset + self.page_size], offset, selected, page, pages, search)

            try:
                answer = self._ask(f"Selected {len(selected)}/{len(choices)}").strip()
            except (KeyboardInterrupt, EOFError):
                outcome.cancel()
                break

            if answer in ("", "y", "c"):
                outcome.confirm([choice.value for choice in choices if choice.value in selected])
            elif answer == "q":
                outcome.cancel()
            elif answer == "a":
                selected.update(choice.value for choice in shown)
            elif answer == "n":
                selected.clear()
            elif answer == ">":
                page += 1
            elif answer == "<":
                page = max(0, page - 1)
            elif answer == "r":
                self._review(choices, selected)
            elif answer.startswith("/"):
                search = answer[1:].strip()
                shown = _filter(choices, search)
                page = 0
                self.console.print(f"Found {len(shown)} matches for {search!r}", markup=False)
            elif answer.startswith("p "):
                self._select_pattern(answer[2:].strip(), shown, selected)
            else:
                indexes = parse_toggle_indexes(answer, len(shown))
                if indexes is None:
                    self.console.print("[yellow]Unrecognized input[/yellow]")
                    continue
                for index in indexes:
                    selected.symmetric_difference_update({shown[index].value})

        return None if outcome.cancelled else outcome.selection

    def _render(
        self,
        visible: list[Choice],
        offset: int,
        selected: set[str],
        page: int,
        pages: int,
        search: str,
    ) -> None:
        title = f"Page {page + 1}/{pages}"
        if search:
            title += f" - filter {search!r}"
        table = Table(title=title, show_header=False, box=None)
        table.add_column("#", style="cyan", justify="right")
        table.add_column("", style="green")
        table.add_column("Branch")
        for number, choice in enumerate(visible, start=offset + 1):
            mark = "[x]" if choice.value in selected else "[ ]"
            table.add_row(str(number), Text(mark), Text(choice.label))
        self.console.print(table)

    def _review(self, choices: list[Choice], selected: set[str]) -> None:
        picked = [choice for choice in choices if choice.value in selected]
        if not picked:
            self.console.print("\nNo items currently selected.")
            return
        self.console.print(f"\nSelected items ({len(picked)}):")
        for index, choice in enumerate(picked, start=1):
            self.console.print(f"  {index}. {choice.label}", markup=False)

    def _select_pattern(self, pattern: str, shown: list[Choice], selected: set[str]) -> None:
        try:
            regex = re.compile(pattern)
        except re.error:
            self.console.print("[yellow]Invalid pattern, no items selected[/yellow]")
            return
        matches = [choice.value for choice in shown if regex.search(choice.value)]
        selected.update(matches)
        self.console.print(f"Selected {len(matches)} items matching pattern {pattern!r}", markup=False)


def _filter(choices: list[Choice], term: str) -> list[Choice]:
    if not term:
        return list(choices)
    needle = term.lower()
    return [c for c in choices if needle in c.value.lower() or needle in c.label.lower()]
