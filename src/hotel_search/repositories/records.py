"""Reference data file access.

Pure read functions: no indexing, no cross-file resolution. Each file is a
header row followed by comma-separated data rows. Fields are split on ``,``
without quoting rules, so field counts are exact.
"""

import os
import re
from dataclasses import dataclass
from pathlib import Path
from typing import TypeAlias

from hotel_search.exceptions import MalformedRecordError, ResourceUnavailableError

FIELD_SEPARATOR = ","
ENCODING = "utf-8"

_INTEGER = re.compile(r"[+-]?[0-9]+")

RecordSource: TypeAlias = str | os.PathLike[str]


@dataclass(frozen=True, slots=True)
class Record:
    """One data row, remembering where it came from for error reporting."""

    source: str
    line_number: int
    fields: tuple[str, ...]

    def __getitem__(self, index: int) -> str:
        return self.fields[index]


def read_records(source: RecordSource, expected_fields: int) -> list[Record]:
    """Read every data row of ``source``, skipping the header and empty lines.

    Lines end at ``\\n``, ``\\r\\n`` or ``\\r`` only; any other character,
    including Unicode line separators, is part of a field.

    Raises:
        ResourceUnavailableError: the file cannot be opened or is not UTF-8.
        MalformedRecordError: a row does not have exactly ``expected_fields`` fields.
    """
    path = Path(source)
    try:
        # Universal newlines: \r\n and \r arrive as \n
        with path.open(encoding=ENCODING) as handle:
            lines = handle.read().split("\n")
    except (OSError, UnicodeDecodeError) as exc:
        raise ResourceUnavailableError(path, str(exc)) from exc

    records = []
    # Line 1 is the header
    for line_number, line in enumerate(lines[1:], start=2):
        if line == "":
            continue
        fields = tuple(line.split(FIELD_SEPARATOR))
        if len(fields) != expected_fields:
            raise MalformedRecordError(
                path,
                line_number,
                f"expected {expected_fields} fields, got {len(fields)}: {line!r}",
            )
        records.append(Record(source=os.fspath(path), line_number=line_number, fields=fields))
    return records


def parse_int(record: Record, index: int, field: str) -> int:
    """Parse field ``index`` of ``record`` as a base-10 integer."""
    value = record[index]
    if not _INTEGER.fullmatch(value):
        raise MalformedRecordError(
            record.source, record.line_number, f"invalid integer for {field}: {value!r}"
        )
    return int(value)
