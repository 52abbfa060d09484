from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from settings import get_settings, parse_year_month


@dataclass(frozen=True)
class CLIConfig:
    input_path: Path
    output_path: Path
    workers: Optional[int]
    cutoff: Tuple[int, int]

    @property
    def cutoff_label(self) -> str:
        year, month = self.cutoff
        return f"{year:04d}-{month:02d}"


def load_config(
    input_path: Optional[Path] = None,
    output_path: Optional[Path] = None,
    workers: Optional[int] = None,
    cutoff: Optional[str] = None,
) -> CLIConfig:
    """Layer command line overrides on top of environment settings.

    Raises ``ValueError`` for a malformed ``cutoff``.
    """
    settings = get_settings()
    return CLIConfig(
        input_path=input_path or Path(settings.input_path),
        output_path=output_path or Path(settings.output_path),
        workers=workers if workers is not None else settings.worker_count,
        cutoff=parse_year_month(cutoff) if cutoff else settings.cutoff,
    )
