from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import typer
from rich.logging import RichHandler

from .collect import collect_contact, collect_event, form_from_pairs
from .config import ensure_workspace
from .enrich import add_gravatar_photo
from .exporter import build_icalendar, build_vcard
from .io import check_document, derive_filename, load_form, read_document, write_document
from .payload import build_qr_request, measure_payload
from .qr import QrRenderError, render_qr
from .report import (
    console,
    print_error,
    print_payload,
    print_preview,
    print_problems,
    print_qr,
    print_written,
)

app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help="qrcard: turn contact and event details into vCard / iCalendar files and QR codes.",
)

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def _read_form(form_file: Path | None, fields: list[str] | None) -> dict[str, Any]:
    form: dict[str, Any] = {}
    try:
        if form_file is not None:
            form.update(load_form(form_file))
        form.update(form_from_pairs(fields or []))
    except (OSError, ValueError) as exc:
        # json.JSONDecodeError is a ValueError
        print_error(f"Could not read form: {exc}")
        raise typer.Exit(code=2)
    return form


# ── Shared pipeline ────────────────────────────────────────────────────────────

def _run_pipeline(
    kind: str,
    form: dict[str, Any],
    output: Path | None,
    save: bool,
    qr: Path | None,
    size: int | None,
    ecl: str | None,
    check: bool,
    quiet: bool,
) -> None:
    """Collect → assemble → size → (render, write) for one document."""
    paths, settings = ensure_workspace()

    # ── 1. Assemble ────────────────────────────────────────────────────────────
    if kind == "vcard":
        contact = collect_contact(form)
        document = build_vcard(contact)
        if contact.use_gravatar:
            document = add_gravatar_photo(document, contact.email)
        name, title = contact.name, "vCard"
    else:
        event = collect_event(form, default_timezone=settings.default_timezone)
        document = build_icalendar(event, uid_domain=settings.uid_domain)
        name, title = event.title, "iCalendar"

    # ── 2. Size ────────────────────────────────────────────────────────────────
    report = measure_payload(document, settings.warn_threshold, settings.tip_threshold)
    if not quiet:
        print_preview(document, title)
    print_payload(report)

    # ── 3. QR image ────────────────────────────────────────────────────────────
    if qr is not None:
        request = build_qr_request(
            document,
            size=size if size is not None else form.get("size"),
            ecl=ecl or form.get("ecl"),
            default_size=settings.default_size,
            default_ecl=settings.default_ecl,
        )
        try:
            render_qr(request, qr)
        except QrRenderError as exc:
            print_error(f"QR code unavailable: {exc}")
            raise typer.Exit(code=1)
        print_qr(request, qr)

    # ── 4. Document file ───────────────────────────────────────────────────────
    target = output
    if target is None and save:
        target = paths.out_dir / derive_filename(name, kind)
    if target is not None:
        try:
            write_document(document, target)
        except OSError as exc:
            logger.warning("Write to %s failed: %s", target, exc)
            print_error(f"Could not write {target}: {exc}. Document follows.")
            typer.echo(document, nl=False)
        else:
            print_written(target, f"{title} written")

    # ── 5. Round-trip check ────────────────────────────────────────────────────
    if check:
        problems = check_document(document)
        if problems:
            print_problems(problems)
            raise typer.Exit(code=1)
        console.print("[green]✓ Document parses cleanly[/green]")


_FORM_HELP = "JSON file with form field values"
_FIELD_HELP = "Form field as KEY=VALUE (repeatable, overrides --form)"


# ── `vcard` command ────────────────────────────────────────────────────────────

@app.command()
def vcard(
    form_file: Path | None = typer.Option(None, "--form", help=_FORM_HELP),
    field: list[str] | None = typer.Option(None, "--field", "-f", help=_FIELD_HELP),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the .vcf here"),
    save: bool = typer.Option(False, "--save", help="Write <Name>.vcf into the output folder"),
    qr: Path | None = typer.Option(None, "--qr", help="Render the QR code PNG here"),
    size: int | None = typer.Option(None, "--size", help="QR image size in px (128-2048)"),
    ecl: str | None = typer.Option(None, "--ecl", help="Error correction level: L, M, Q or H"),
    check: bool = typer.Option(False, "--check", help="Parse the result back with vobject"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print the document"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Build a contact card.

    \b
    Fields: name, org, title, phone, email, useGravatar, work, url,
            street, city, region, postal, country, note
    """
    _setup_logging(verbose)
    form = _read_form(form_file, field)
    _run_pipeline("vcard", form, output, save, qr, size, ecl, check, quiet)


# ── `event` command ────────────────────────────────────────────────────────────

@app.command()
def event(
    form_file: Path | None = typer.Option(None, "--form", help=_FORM_HELP),
    field: list[str] | None = typer.Option(None, "--field", "-f", help=_FIELD_HELP),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the .ics here"),
    save: bool = typer.Option(False, "--save", help="Write <Title>.ics into the output folder"),
    qr: Path | None = typer.Option(None, "--qr", help="Render the QR code PNG here"),
    size: int | None = typer.Option(None, "--size", help="QR image size in px (128-2048)"),
    ecl: str | None = typer.Option(None, "--ecl", help="Error correction level: L, M, Q or H"),
    check: bool = typer.Option(False, "--check", help="Parse the result back with vobject"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Do not print the document"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Build a calendar event.

    \b
    Fields: title, startDate, hasStartTime, startTime, endDate, hasEndTime,
            endTime, timezone, location, description, organizer, organizerEmail
    """
    _setup_logging(verbose)
    form = _read_form(form_file, field)
    _run_pipeline("ical", form, output, save, qr, size, ecl, check, quiet)


# ── `check` command ────────────────────────────────────────────────────────────

@app.command()
def check(
    path: Path = typer.Argument(..., exists=True, dir_okay=False, help=".vcf or .ics file"),
    verbose: bool = typer.Option(False, "--verbose", "-v"),
) -> None:
    """Parse an existing .vcf / .ics file and report its QR payload size."""
    _setup_logging(verbose)
    _, settings = ensure_workspace()
    document = read_document(path)
    print_payload(measure_payload(document, settings.warn_threshold, settings.tip_threshold))
    problems = check_document(document)
    if problems:
        print_problems(problems)
        raise typer.Exit(code=1)
    console.print(f"[green]✓ {path.name} parses cleanly[/green]")


if __name__ == "__main__":
    app()
