"""Loading pipe-delimited device readings into immutable records."""

from __future__ import annotations

import csv
import logging
import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, List, Optional, Sequence, TextIO, Tuple

from models.channels import SENSOR_CHANNELS, SensorChannel
from models.errors import AllocationFailure, InputUnavailable, InvalidRecord
from models.records import MAX_DEVICE_LENGTH, SensorRecord, parse_record_date
from settings import DEFAULT_CUTOFF

logger = logging.getLogger(__name__)

DELIMITER = "|"
DEVICE_COLUMN = "device"
DATE_COLUMN = "date"


@dataclass
class LoadResult:
    """Records that survived filtering plus what was dropped and why."""

    records: Tuple[SensorRecord, ...] = ()
    filtered_count: int = 0
    errors: List[InvalidRecord] = field(default_factory=list)

    @property
    def skipped_count(self) -> int:
        return len(self.errors)


class RecordStore:
    """Reads the device export and keeps readings from ``cutoff`` onwards."""

    def __init__(
        self,
        cutoff: Tuple[int, int] = DEFAULT_CUTOFF,
        channels: Sequence[SensorChannel] = SENSOR_CHANNELS,
    ) -> None:
        self.cutoff = cutoff
        self.channels = tuple(channels)

    def load_path(self, path: Path | str) -> LoadResult:
        source = Path(path)
        try:
            handle = source.open("r", encoding="utf-8", newline="")
        except OSError as exc:
            raise InputUnavailable(f"Failed to open input file {str(source)!r}: {exc.strerror or exc}") from exc
        with handle:
            return self.load(handle, source_name=str(source))

    def load_text(self, text: str, source_name: str = "<upload>") -> LoadResult:
        return self.load(text.splitlines(keepends=True), source_name=source_name)

    def load(self, stream: TextIO | Sequence[str], source_name: str = "<stream>") -> LoadResult:
        reader = csv.DictReader(stream, delimiter=DELIMITER, quoting=csv.QUOTE_NONE)
        try:
            fieldnames = reader.fieldnames
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise InputUnavailable(f"Failed to read input {source_name!r}: {exc}") from exc
        if not fieldnames:
            raise InputUnavailable(f"Input {source_name!r} is missing a header row.")

        normalized = {name.lower().strip(): name for name in fieldnames if name}
        required = [DEVICE_COLUMN, DATE_COLUMN, *(channel.column for channel in self.channels)]
        missing = [name for name in required if name not in normalized]
        if missing:
            raise InputUnavailable(
                f"Input {source_name!r} missing required columns: {', '.join(missing)}"
            )
        columns = {name: normalized[name] for name in required}

        kept: List[SensorRecord] = []
        result = LoadResult()
        try:
            for row in reader:
                line_number = reader.line_num
                try:
                    record = self._parse_row(row, columns, line_number)
                except InvalidRecord as exc:
                    result.errors.append(exc)
                    logger.warning(
                        "Skipping row %d: %s",
                        line_number,
                        exc.reason,
                        extra={
                            "input_path": source_name,
                            "line_number": line_number,
                            "reason": exc.reason,
                            "invalid_value": exc.invalid_value,
                        },
                    )
                    continue

                if record.is_before(self.cutoff):
                    result.filtered_count += 1
                    continue
                kept.append(record)
        except MemoryError as exc:
            raise AllocationFailure(f"Unable to buffer records from {source_name!r}.") from exc
        except (OSError, UnicodeDecodeError, csv.Error) as exc:
            raise InputUnavailable(f"Failed to read input {source_name!r}: {exc}") from exc

        result.records = tuple(kept)
        logger.info(
            "Loaded records",
            extra={
                "input_path": source_name,
                "record_count": len(result.records),
                "filtered_count": result.filtered_count,
                "skipped_count": result.skipped_count,
            },
        )
        return result

    def _parse_row(
        self,
        row: Dict[str, Optional[str]],
        columns: Dict[str, str],
        line_number: int,
    ) -> SensorRecord:
        device = (row.get(columns[DEVICE_COLUMN]) or "").strip()
        if not device:
            raise InvalidRecord("missing device", line_number=line_number)
        if len(device) > MAX_DEVICE_LENGTH:
            logger.debug(
                "Truncating device identifier",
                extra={"line_number": line_number, "invalid_value": device},
            )
            device = device[:MAX_DEVICE_LENGTH]

        date_raw = (row.get(columns[DATE_COLUMN]) or "").strip()
        if not date_raw:
            raise InvalidRecord("missing date", line_number=line_number)
        try:
            year, month = parse_record_date(date_raw)
        except InvalidRecord as exc:
            exc.line_number = line_number
            raise

        values: List[float] = []
        for channel in self.channels:
            raw = (row.get(columns[channel.column]) or "").strip()
            if not raw:
                raise InvalidRecord(f"missing {channel.column}", line_number=line_number)
            try:
                value = float(raw)
            except ValueError as exc:
                raise InvalidRecord(
                    "invalid numeric value", line_number=line_number, invalid_value=raw
                ) from exc
            if not math.isfinite(value):
                raise InvalidRecord(
                    "invalid numeric value", line_number=line_number, invalid_value=raw
                )
            values.append(value)

        return SensorRecord(device=device, year=year, month=month, values=tuple(values))
