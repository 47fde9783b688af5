"""Rendering of ManifestWork status for the command line.

Conditions print as a table with one row per condition. The whole status can
also be printed as a YAML or JSON document using the serialized field names.
"""

from collections.abc import Generator
import json
from typing import Any, TextIO

import yaml

from work_status.manifest import ManifestWorkStatus

__all__ = [
    "format_table",
    "print_table",
    "print_status",
]

COLUMN_PADDING = 4


def format_table(
    keys: list[str], rows: list[dict[str, Any]]
) -> Generator[str, None, None]:
    """Yield the rows aligned in columns under an upper case header.

    Nothing is yielded when there are no rows. Missing values print empty.
    """
    if not rows:
        return
    cells = [[key.upper() for key in keys]]
    for row in rows:
        cells.append(["" if row.get(key) is None else str(row[key]) for key in keys])
    widths = [
        max(len(line[i]) for line in cells) + COLUMN_PADDING for i in range(len(keys))
    ]
    for line in cells:
        yield "".join(cell.ljust(width) for cell, width in zip(line, widths)).rstrip()


def print_table(
    keys: list[str], rows: list[dict[str, Any]], file: TextIO | None = None
) -> None:
    for line in format_table(keys, rows):
        print(line, file=file)


def print_status(
    status: ManifestWorkStatus, output: str, file: TextIO | None = None
) -> None:
    """Print the status as a `yaml` or `json` document."""
    data = status.to_dict()
    if output == "yaml":
        print(yaml.dump(data, sort_keys=False, explicit_start=True), end="", file=file)
    elif output == "json":
        print(json.dumps(data, indent=4), file=file)
    else:
        raise ValueError(f"Unsupported output format: {output}")
