# Formatter — Rich terminal output for gscli commands.
# Created: 2026-10-06

from __future__ import annotations

import math
from datetime import datetime
from typing import Any

from rich.console import Console
from rich.markup import escape

console = Console(highlight=False)
err_console = Console(stderr=True, highlight=False)


def format_bytes(size: str | int | None) -> str:
    """Human-readable size, e.g. '1.50 KB'. 'N/A' when unknown."""
    if size in (None, ""):
        return "N/A"
    n = int(size)
    if n == 0:
        return "0 B"
    units = ["B", "KB", "MB", "GB", "TB"]
    i = min(int(math.log(n, 1024)), len(units) - 1)
    return f"{n / 1024**i:.2f} {units[i]}"


def format_date(value: str) -> str:
    """Format an ISO timestamp like 'Oct 18, 2026, 09:30'. Unparseable input is returned as-is."""
    if not value:
        return ""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return value
    if len(value) == 10:  # all-day event date
        return dt.strftime("%b %d, %Y")
    return dt.strftime("%b %d, %Y, %H:%M")


def truncate(text: str, max_length: int) -> str:
    if len(text) <= max_length:
        return text
    return text[: max_length - 3] + "..."


def show_success(message: str) -> None:
    console.print(f"[green]✓[/green] {escape(message)}")


def show_info(message: str) -> None:
    console.print(f"[blue]ℹ[/blue] {escape(message)}")


def show_error(message: str, hint: str = "") -> None:
    err_console.print(f"[bold red]✗ Error:[/bold red] {escape(message)}")
    if hint:
        err_console.print(f"  [yellow]{escape(hint)}[/yellow]")


def print_accounts(accounts: list[Any]) -> None:
    if not accounts:
        console.print("[yellow]No accounts configured.[/yellow]")
        return
    console.print(f"[bold cyan]\n{len(accounts)} account(s):\n[/bold cyan]")
    for acct in accounts:
        marker = " [green](default)[/green]" if acct.is_default else ""
        console.print(f"  {escape(acct.email)}{marker}")
    console.print()


def print_messages(messages: list[dict[str, Any]]) -> None:
    if not messages:
        console.print("[yellow]No messages found.[/yellow]")
        return
    console.print(f"[bold cyan]\nFound {len(messages)} message(s):\n[/bold cyan]")
    for i, msg in enumerate(messages, 1):
        console.print(f"[bold]{i}. {escape(msg['subject'])}[/bold]")
        console.print(f"[dim]   From: {escape(truncate(msg['from'], 60))}[/dim]")
        console.print(f"[dim]   Date: {escape(msg['date'])}[/dim]")
        console.print(f"[dim]   Snippet: {escape(truncate(msg['snippet'], 80))}[/dim]")
        console.print(f"[dim]   ID: {msg['id']}[/dim]\n")


def print_message(msg: dict[str, Any]) -> None:
    console.print(f"[bold]{escape(msg['subject'])}[/bold]")
    console.print(f"[dim]From: {escape(msg['from'])}\nTo: {escape(msg['to'])}\nDate: {escape(msg['date'])}[/dim]\n")
    console.print(escape(msg["body"]))


def print_labels(labels: list[dict[str, str]]) -> None:
    if not labels:
        console.print("[yellow]No folders/labels found.[/yellow]")
        return
    console.print(f"[bold cyan]\nFound {len(labels)} folder(s)/label(s):\n[/bold cyan]")
    for group, title in (("system", "System"), ("user", "User")):
        members = [lb for lb in labels if (lb.get("type") or "user") == group]
        if members:
            console.print(f"[bold]{title}:[/bold]")
            for lb in members:
                console.print(f"  {escape(lb['name'])} [dim]({lb['id']})[/dim]")


def print_files(files: list[dict[str, Any]]) -> None:
    if not files:
        console.print("[yellow]No files found.[/yellow]")
        return
    console.print(f"[bold cyan]\nFound {len(files)} file(s):\n[/bold cyan]")
    for i, f in enumerate(files, 1):
        kind = "📁" if f["isFolder"] else "📄"
        console.print(f"[bold]{i}. {kind} {escape(f['name'])}[/bold]")
        console.print(f"[dim]   ID: {f['id']}[/dim]")
        if not f["isFolder"]:
            console.print(f"[dim]   Size: {format_bytes(f['size'])}[/dim]")
        console.print(f"[dim]   Modified: {format_date(f['modifiedTime'])}[/dim]")
        if f.get("webViewLink"):
            console.print(f"[dim]   Link: {f['webViewLink']}[/dim]")
        console.print()


def print_comments(file_name: str, comments: list[dict[str, Any]], include_resolved: bool) -> None:
    if not comments:
        qualifier = "" if include_resolved else "unresolved "
        console.print(f"[yellow]\nNo {qualifier}comments found on: {escape(file_name)}\n[/yellow]")
        return
    console.print(f"[bold cyan]\nComments on: {escape(file_name)}[/bold cyan]")
    console.print(f"[dim]Found {len(comments)} comment(s)\n[/dim]")
    for i, c in enumerate(comments, 1):
        if c["resolved"]:
            badge = f"[green] {escape('[RESOLVED]')}[/green]"
        else:
            badge = f"[yellow] {escape('[OPEN]')}[/yellow]"
        console.print(f"[bold]{i}. {escape(c['author'])}[/bold]{badge}")
        console.print(f"[dim]   Created: {format_date(c['createdTime'])}[/dim]")
        if c["quotedContent"]:
            console.print(f'[dim]   Quoted: "{escape(truncate(c["quotedContent"], 60))}"[/dim]')
        console.print(f"   {escape(c['content'])}")
        if c["replies"]:
            console.print(f"[dim]   Replies ({len(c['replies'])}):[/dim]")
            for r in c["replies"]:
                console.print(f"[dim]     • {escape(r['author'])}: {escape(truncate(r['content'], 80))}[/dim]")
        console.print()


def print_events(events: list[dict[str, Any]]) -> None:
    if not events:
        console.print("[yellow]No events found.[/yellow]")
        return
    console.print(f"[bold cyan]\nFound {len(events)} event(s):\n[/bold cyan]")
    for i, ev in enumerate(events, 1):
        console.print(f"[bold]{i}. {escape(ev['summary'])}[/bold]")
        console.print(f"[dim]   When: {format_date(ev['start'])} - {format_date(ev['end'])}[/dim]")
        if ev.get("location"):
            console.print(f"[dim]   Where: {escape(ev['location'])}[/dim]")
        if ev.get("organizer"):
            console.print(f"[dim]   Organizer: {escape(ev['organizer'])}[/dim]")
        if ev.get("attendees"):
            console.print(f"[dim]   Attendees: {escape(', '.join(ev['attendees']))}[/dim]")
        console.print(f"[dim]   ID: {ev['id']}[/dim]\n")


def print_calendars(calendars: list[dict[str, str]]) -> None:
    if not calendars:
        console.print("[yellow]No calendars found.[/yellow]")
        return
    for cal in calendars:
        console.print(f"  {escape(cal['summary'])} [dim]({escape(cal['id'])})[/dim]")
