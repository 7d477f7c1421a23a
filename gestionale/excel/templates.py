from __future__ import annotations

from pathlib import Path

import pandas as pd

from .mappers import template_headers

"""Import template generation.

A template is a workbook whose first row holds the canonical header labels
of one entity, ready to be filled in and dropped into the import directory.
"""

__all__ = [
    "write_template",
]


def write_template(entity: str, directory: Path, sheet_name: str | None = None) -> Path:
    """Write <entity>_template.xlsx into directory and return its path.

    Raises UnknownEntityError for entities without a mapper.
    """
    headers = template_headers(entity)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / f"{entity}_template.xlsx"
    with pd.ExcelWriter(path) as writer:
        pd.DataFrame([headers]).to_excel(
            writer, sheet_name=sheet_name or entity, header=False, index=False
        )
    return path
