from __future__ import annotations

from pathlib import Path

import pytest

from app.schemas import RunStatus
from models.errors import InputUnavailable
from reports.writer import ReportWriter
from services.engine import AggregationEngine
from services.processor import ProcessorService
from storage.record_store import RecordStore

HEADER = "id|device|contagem|date|temperatura|umidade|luminosidade|ruido|eco2|etvoc|latitude|longitude\n"


@pytest.fixture()
def processor() -> ProcessorService:
    return ProcessorService(
        store=RecordStore(),
        engine=AggregationEngine(workers=4),
        writer=ReportWriter(),
    )


def _export(rows: list[tuple[str, str, float]]) -> str:
    lines = [HEADER]
    for index, (device, date, value) in enumerate(rows, start=1):
        values = "|".join(str(value + channel) for channel in range(6))
        lines.append(f"{index}|{device}|{index}|{date} 08:00:00|{values}|0|0\n")
    return "".join(lines)


def _scenario() -> list[tuple[str, str, float]]:
    rows = []
    for device in ("device-a", "device-b"):
        for month in ("2024-03", "2024-04", "2024-05"):
            for day, value in enumerate((10.0, 20.0, 30.0, 40.0), start=1):
                rows.append((device, f"{month}-{day:02d}", value))
    return rows


def test_process_file_writes_report(processor: ProcessorService, tmp_path: Path) -> None:
    input_path = tmp_path / "devices.csv"
    output_path = tmp_path / "sensor_stats.csv"
    input_path.write_text(_export(_scenario()), encoding="utf-8")

    summary = processor.process_file(input_path, output_path)

    assert summary.status is RunStatus.processed
    assert summary.record_count == 24
    assert summary.entry_count == 6
    assert summary.row_count == 36
    assert summary.worker_count == 4
    assert summary.output_path == str(output_path)
    lines = output_path.read_text(encoding="utf-8").splitlines()
    assert lines[0] == "device;ano-mes;sensor;valor_maximo;valor_medio;valor_minimo"
    assert lines[1] == "device-a;2024-03;temperatura;40.00;25.00;10.00"
    assert lines[2] == "device-a;2024-03;umidade;41.00;26.00;11.00"
    assert len(lines) == 37


def test_report_is_identical_for_one_and_many_workers(tmp_path: Path) -> None:
    input_path = tmp_path / "devices.csv"
    input_path.write_text(_export(_scenario()), encoding="utf-8")
    outputs = []
    for workers in (1, 4):
        service = ProcessorService(
            store=RecordStore(),
            engine=AggregationEngine(workers=workers),
            writer=ReportWriter(),
        )
        output_path = tmp_path / f"stats-{workers}.csv"
        service.process_file(input_path, output_path)
        outputs.append(output_path.read_text(encoding="utf-8"))

    assert outputs[0] == outputs[1]


def test_all_records_filtered_is_empty_not_error(processor: ProcessorService, tmp_path: Path) -> None:
    input_path = tmp_path / "devices.csv"
    output_path = tmp_path / "sensor_stats.csv"
    input_path.write_text(
        _export([("device-a", "2024-02-28", 1.0), ("device-a", "2023-11-02", 2.0)]),
        encoding="utf-8",
    )

    summary = processor.process_file(input_path, output_path)

    assert summary.status is RunStatus.empty
    assert summary.entry_count == 0
    assert summary.row_count == 0
    assert summary.filtered_count == 2
    assert summary.output_path is None
    assert not output_path.exists()


def test_malformed_rows_make_run_partial(processor: ProcessorService) -> None:
    text = _export(_scenario()[:4]) + "99|device-a|1|2024-03-09|x|1|1|1|1|1|0|0\n"

    response = processor.process_text(text, source_name="upload.csv")

    summary = response.summary
    assert summary.status is RunStatus.partial
    assert summary.skipped_count == 1
    assert summary.errors[0].line_number == 6
    assert summary.errors[0].reason == "invalid numeric value"
    assert summary.input_path == "upload.csv"
    assert len(response.rows) == 6


def test_missing_input_raises(processor: ProcessorService, tmp_path: Path) -> None:
    with pytest.raises(InputUnavailable):
        processor.process_file(tmp_path / "absent.csv", tmp_path / "out.csv")
