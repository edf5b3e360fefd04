"""Bootstrap CSV loader for historical signatures.

Format, one signature per line::

    address,name,message[,origin_chain_id,timestamp]

Lines starting with ``#`` and blank lines are skipped.  Messages may
contain commas if the field is quoted.  When the optional columns are
missing the record takes the supplied default chain id and timestamp.
"""

from __future__ import annotations

import csv
import io
from collections.abc import Iterator, Sequence
from pathlib import Path

from pydantic import ValidationError

from guestbook.models.records import SignatureRecord


class BootstrapFormatError(ValueError):
    """Raised when a bootstrap line cannot be turned into a record."""


def _data_lines(text: str) -> Iterator[tuple[int, str]]:
    for lineno, line in enumerate(text.splitlines(), start=1):
        stripped = line.strip()
        if not stripped or stripped.startswith("#"):
            continue
        yield lineno, line


def parse_bootstrap(
    text: str, *, default_chain_id: int, default_timestamp: int
) -> list[SignatureRecord]:
    """Parse bootstrap CSV text into records, in file order."""
    records: list[SignatureRecord] = []
    for lineno, line in _data_lines(text):
        row = next(csv.reader(io.StringIO(line), skipinitialspace=True))
        if len(row) not in (3, 5):
            raise BootstrapFormatError(
                f"line {lineno}: expected 3 or 5 fields, got {len(row)}"
            )
        address, name, message = (field.strip() for field in row[:3])
        try:
            chain_id = int(row[3]) if len(row) == 5 else default_chain_id
            timestamp = int(row[4]) if len(row) == 5 else default_timestamp
            records.append(
                SignatureRecord(
                    signer=address,
                    origin_chain_id=chain_id,
                    name=name,
                    message=message,
                    timestamp=timestamp,
                )
            )
        except (ValueError, ValidationError) as exc:
            raise BootstrapFormatError(f"line {lineno}: {exc}") from exc
    return records


def load_bootstrap(
    path: Path | str, *, default_chain_id: int, default_timestamp: int
) -> list[SignatureRecord]:
    return parse_bootstrap(
        Path(path).read_text(encoding="utf-8"),
        default_chain_id=default_chain_id,
        default_timestamp=default_timestamp,
    )


def chunked(
    records: Sequence[SignatureRecord], size: int
) -> Iterator[Sequence[SignatureRecord]]:
    """Split *records* into consecutive batches of at most *size*."""
    if size < 1:
        raise ValueError("chunk size must be at least 1")
    for start in range(0, len(records), size):
        yield records[start : start + size]
