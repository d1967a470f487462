from rich.console import Console
from rich.style import Style
from rich.text import Text
from typing import Dict, Optional
from artha_ai.utils.logging_config import logger

console = Console()


class TaskProgress:
    """Prints one status line whenever a task's status or ticker changes."""

    def __init__(self, console: Console = console):
        self.console = console
        self.task_status: Dict[str, Dict[str, Optional[str]]] = {}
        self.started = False

    def start(self):
        self.started = True

    def stop(self):
        self.started = False
        self.task_status.clear()

    def update_status(self, task_name: str, ticker: Optional[str] = None, status: str = ""):
        """Update and print the status of a task."""
        if not self.started:
            return

        info = self.task_status.setdefault(task_name, {"status": "", "ticker": None})
        new_ticker = ticker if ticker is not None else info["ticker"]
        new_status = status or info["status"]

        # Only print if something actually changed
        if new_ticker == info["ticker"] and new_status == info["status"]:
            return
        info["ticker"] = new_ticker
        info["status"] = new_status
        logger.debug(f"{task_name} [{new_ticker}] {new_status}")
        self.console.print(self.render(task_name))

    def render(self, task_name: str) -> Text:
        info = self.task_status.get(task_name, {})
        status = info.get("status") or ""
        ticker = info.get("ticker")

        symbol = "⋯"
        style = Style(color="yellow")
        lowered = status.lower()
        if lowered == "done" or "complete" in lowered:
            style = Style(color="green", bold=True)
            symbol = "✓"
        elif "error" in lowered or "failed" in lowered:
            style = Style(color="red", bold=True)
            symbol = "✗"

        text = Text()
        text.append(f"{symbol} ", style=style)
        text.append(f"{task_name:<15}", style=Style(bold=True))
        if ticker:
            text.append(f"[{ticker}] ", style=Style(color="cyan"))
        text.append(status, style=style)
        return text


# Create a global instance
progress = TaskProgress()
