from __future__ import annotations

from pathlib import Path

from rich.console import Console
from rich.panel import Panel
from rich.text import Text

from .model import PayloadSizeReport, QrRequest

console = Console()

# ── Palette ────────────────────────────────────────────────────────────────────
_ACCENT  = "#4d9fff"
_GREEN   = "#3ecf8e"
_AMBER   = "#f0a500"
_RED     = "#f05c5c"
_MID     = "#8896af"
_DIM     = "#546075"
_BORDER  = "#2a3347"


def payload_line(report: PayloadSizeReport) -> Text:
    colour = _AMBER if report.is_warning else _GREEN
    line = Text("Payload size: ", style=_MID)
    line.append(f"{report.size_bytes} bytes", style=f"bold {colour}")
    line.append(
        f" · Tip: keep under ~{report.tip_threshold} bytes for best compatibility.",
        style=f"dim {_DIM}",
    )
    return line


def print_preview(document: str, title: str) -> None:
    # Rich would treat "[...]" in user text as markup
    body = Text(document.replace("\r\n", "\n").rstrip("\n"))
    console.print(Panel(
        body,
        title=Text(f"  {title}  ", style=f"dim {_DIM}"),
        title_align="left",
        border_style=_BORDER,
        padding=(0, 1),
    ))


def print_payload(report: PayloadSizeReport) -> None:
    console.print(payload_line(report))


def print_written(path: Path, label: str) -> None:
    body = Text()
    body.append(f"✓  {label}\n", style=f"bold {_GREEN}")
    body.append(str(path), style=f"dim {_MID}")
    console.print(Panel(body, border_style=_GREEN, padding=(0, 2)))


def print_qr(request: QrRequest, path: Path) -> None:
    row = Text()
    row.append("  ▣ ", style=f"bold {_ACCENT}")
    row.append(f"{path}", style=_MID)
    row.append(f"  {request.size}px · ECL {request.ecl}", style=f"dim {_DIM}")
    console.print(row)


def print_problems(problems: list[str]) -> None:
    for p in problems:
        console.print(Text(f"  ✗ {p}", style=_RED))


def print_error(message: str) -> None:
    console.print(Text(message, style=f"bold {_RED}"))
