from __future__ import annotations

import json
import logging
import math
import os
import sys
from pathlib import Path
from typing import TextIO

from .collector import RunReport

LOGGER = logging.getLogger("gasbench.report")

RESULTS_FILENAME = "measurements.json"
SAMPLES_FILENAME = "measurements.csv"


class ResultsReporter:
    """Console summary plus full-snapshot JSON/CSV files, rewritten per level."""

    def __init__(
        self,
        results_path: Path,
        samples_path: Path | None = None,
        stream: TextIO | None = None,
    ) -> None:
        self.results_path = results_path
        self.samples_path = samples_path
        self._stream = stream

    @classmethod
    def for_directory(cls, output_dir: Path, stream: TextIO | None = None) -> "ResultsReporter":
        return cls(output_dir / RESULTS_FILENAME, output_dir / SAMPLES_FILENAME, stream)

    def reset(self) -> None:
        """Drop whatever a previous session left behind."""
        for path in (self.results_path, self.samples_path):
            if path is not None and path.exists():
                LOGGER.info("Removing stale results file %s", path)
                path.unlink()
        self.results_path.parent.mkdir(parents=True, exist_ok=True)

    def flush(self, report: RunReport) -> None:
        self.print_summary(report)
        self._write_json(report)
        if self.samples_path is not None:
            report.build_dataframe().to_csv(self.samples_path, index=False)
        LOGGER.info("Results for %d level(s) written to %s", len(report), self.results_path)

    def print_summary(self, report: RunReport) -> None:
        stream = self._stream or sys.stdout
        for aggregator in report.levels():
            print(aggregator.label, file=stream)
            for category, stats in aggregator.items():
                line = f"   {category} {math.ceil(stats.average)}"
                if stats.failures:
                    line += f" ({stats.failures} failed)"
                print(line, file=stream)
        stream.flush()

    def _write_json(self, report: RunReport) -> None:
        tmp_path = self.results_path.with_name(self.results_path.name + ".tmp")
        with open(tmp_path, "w", encoding="utf-8") as f:
            json.dump(report.to_dict(), f, indent=2)
        os.replace(tmp_path, self.results_path)

