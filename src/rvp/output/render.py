"""
Human (rich table) and machine (JSON) renderings of extraction results.
"""

from __future__ import annotations

import json
from typing import Iterable, List

from rich import box
from rich.console import Console, Group
from rich.table import Table
from rich.text import Text

from rvp.scraper.batch import BatchResult, ResourceResult
from rvp.scraper.values import ParsedValue, Value


def format_value(value: Value) -> str:
    """Render a value as a JSON literal, so strings show up quoted."""
    return json.dumps(value, ensure_ascii=False)


def values_table(values: Iterable[ParsedValue], title: str | None = None) -> Table:
    table = Table(title=title, box=box.ROUNDED, show_lines=True, title_justify="left")
    table.add_column("Name")
    table.add_column("Value")
    for parsed in values:
        # Text cells: scraped content must not be read as console markup
        table.add_row(Text(parsed.name), Text(format_value(parsed.value)))
    return table


def resource_renderable(result: ResourceResult) -> Group | Text:
    if result.ok:
        # titles wrap to the table width, so the URL goes on its own line
        return Group(Text(f"Table for resource: {result.url}", style="bold"), values_table(result.values))
    return Text(f"✗ {result.url}: {result.error}", style="red")


def print_batch_table(batch: BatchResult, console: Console) -> None:
    console.print(Group(*(resource_renderable(result) for result in batch.results)))
    if not batch.ok:
        console.print(Text(f"{batch.failed} of {len(batch.results)} resource(s) failed", style="yellow"))


def batch_to_json(batch: BatchResult, indent: int | None = 2) -> str:
    """One object per resource, in input order, grouped by resource URL."""
    payload: List[dict] = [result.to_dict() for result in batch.results]
    return json.dumps(payload, indent=indent, ensure_ascii=False)
