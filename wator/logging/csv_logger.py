"""
CSV Logger for the Wa-Tor Simulator.

Appends one KPI row per logged chronon to a CSV file. The header is
written with the first row; later rows are appended so a long run can be
inspected while it is still going.
"""

from __future__ import annotations

import csv
from pathlib import Path
from typing import Iterable, Optional

import pandas as pd

from wator.simulation.metrics import MetricsCollector


class CSVLogger:
    """
    Logs chronon KPIs to a CSV file.

    Usage:
        logger = CSVLogger("runs/my_run/metrics.csv")
        logger.log_row(kpis)                    # append one row
        logger.log_rows(metrics.history)        # append many

    Attributes:
        file_path: Path to the CSV file.
        columns: Ordered list of column names.
        rows_written: Rows appended by this logger.
    """

    def __init__(
        self,
        file_path: str | Path,
        columns: Optional[list[str]] = None,
    ):
        self.file_path = Path(file_path)
        self.columns = columns or MetricsCollector.kpi_names()
        self.rows_written = 0
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

    def _needs_header(self) -> bool:
        return not self.file_path.exists() or self.file_path.stat().st_size == 0

    def log_rows(self, rows: Iterable[dict]) -> int:
        """
        Append KPI rows, writing the header first if the file is new.

        Keys outside `columns` are ignored.

        Returns:
            Number of rows written.
        """
        write_header = self._needs_header()
        count = 0
        with open(self.file_path, "a", newline="", encoding="utf-8") as f:
            writer = csv.DictWriter(f, fieldnames=self.columns, extrasaction="ignore")
            if write_header:
                writer.writeheader()
            for row in rows:
                writer.writerow(row)
                count += 1
        self.rows_written += count
        return count

    def log_row(self, kpis: dict) -> None:
        """Append a single KPI row."""
        self.log_rows([kpis])

    def read_dataframe(self) -> pd.DataFrame:
        """
        Load the logged rows back as a DataFrame.

        Returns an empty frame with the logger's columns if nothing was logged.
        """
        if self._needs_header():
            return pd.DataFrame(columns=self.columns)
        return pd.read_csv(self.file_path)
