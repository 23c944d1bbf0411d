"""Terminal rendering of a run.

All styling lives in a RenderStyle passed to the Renderer, so the core never
sees colours and the HTTP service can render the same output into a
recording console.
"""

from __future__ import annotations

import importlib.metadata
from dataclasses import dataclass

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel

from yoloc_core import scoring
from yoloc_core.orchestrator import RunRow, RunSummary

_BANNER = r"""
             |
   |  |  _ \ |  _ \  _|
  \_, |\___/_|\___/\__|        v{version}
  ___/
"""


@dataclass(frozen=True)
class RenderStyle:
    frame: str = "#666666"
    full: str = "bold #00FF00"  # score == max: they really YOLO
    none: str = "bold #FF0099"  # score == 0: too good
    partial: str = "bold #FFFF00"
    error: str = "bold #FF0000"
    banner: str = "bold #00FF00"


def _version() -> str:
    try:
        return importlib.metadata.version("yoloc")
    except importlib.metadata.PackageNotFoundError:
        return "0.0.0"


class Renderer:
    def __init__(self, console: Console, style: RenderStyle | None = None):
        self.console = console
        self.style = style or RenderStyle()

    def banner(self) -> None:
        self.console.print(_BANNER.format(version=_version()), style=self.style.banner, highlight=False)

    def header(self, repo: str, image: str = "") -> None:
        self.console.print(f"Analyzing {escape(repo)} {escape(image)}".rstrip(), highlight=False)

    def _check_box(self, style: str, mark: str, msg: str) -> None:
        frame = self.style.frame
        self.console.print(
            f"  [{frame}]\\[[/{frame}][{style}]{escape(mark)}[/{style}][{frame}]][/{frame}] [{style}]{escape(msg)}[/{style}]",
            highlight=False,
        )

    def row(self, row: RunRow) -> None:
        if row.failed:
            self._check_box(self.style.error, "error", f"{row.check} failed: {row.error}")
            return

        r = row.result
        if r.score == r.max:
            style = self.style.full
        elif r.score == 0:
            style = self.style.none
        else:
            style = self.style.partial
        self._check_box(style, f"{r.score:2d}/{r.max:2d}", f"{row.check}: {r.message}")

    def summary(self, summary: RunSummary) -> None:
        if summary.cached:
            self.console.print("\n[dim](results from cache)[/dim]")
        self.console.print(
            f"\nYour score: {summary.score} out of {summary.max_score} ({summary.percentage}%)", highlight=False
        )
        name, desc = scoring.personality(summary.percentage)
        self.console.print("\n\nYour YOLO personality:")
        self.console.print(Panel(f"[bold]{escape(name)}[/bold]\n>> {escape(desc)}", expand=False))
        self.console.print(f"\nYour YOLO level: {summary.level} out of {scoring.MAX_LEVEL}", highlight=False)
