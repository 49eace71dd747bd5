"""
Report execution: one report, a selection, or the whole catalogue.

Pipelines only read the dataset, so ``run_all`` can fan them out over a
thread pool. Results always come back in catalogue order.
"""

import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import pandas as pd
import structlog

from ..config import Settings, settings as default_settings
from ..dataset import Dataset
from .reports import REPORTS, ReportDefinition

logger = structlog.get_logger()


@dataclass
class ReportResult:
    """Output of one report run."""

    name: str
    number: int
    title: str
    columns: List[str]
    rows: List[Dict[str, Any]] = field(default_factory=list)
    duration_seconds: Optional[float] = None

    def to_frame(self) -> pd.DataFrame:
        """Rebuild the rows as a DataFrame with the projected column order."""
        return pd.DataFrame(self.rows, columns=self.columns)

    def __len__(self) -> int:
        return len(self.rows)


class ReportRunner:
    """Runs catalogue reports against one validated dataset."""

    def __init__(self, dataset: Dataset, settings: Optional[Settings] = None):
        self.dataset = dataset
        self.settings = settings or default_settings

    @staticmethod
    def available_reports() -> List[str]:
        """Report names in catalogue order."""
        return sorted(REPORTS, key=lambda name: REPORTS[name].number)

    def _definition(self, name: str) -> ReportDefinition:
        try:
            return REPORTS[name]
        except KeyError:
            raise KeyError(
                f"Unknown report {name!r}; available: {self.available_reports()}"
            ) from None

    def run(self, name: str) -> ReportResult:
        """Run a single report by name."""
        definition = self._definition(name)
        start_time = time.perf_counter()

        try:
            frame = definition.compute(self.dataset, digits=self.settings.round_digits)
        except Exception as e:
            logger.error("Report failed", report=name, error=str(e))
            raise

        duration = time.perf_counter() - start_time
        result = ReportResult(
            name=definition.name,
            number=definition.number,
            title=definition.title,
            columns=list(definition.columns),
            rows=frame.to_dict(orient="records"),
            duration_seconds=duration,
        )
        logger.info(
            "Report completed",
            report=name,
            number=definition.number,
            rows=len(result),
            duration_seconds=round(duration, 4),
        )
        return result

    def run_all(self, names: Optional[Iterable[str]] = None) -> Dict[str, ReportResult]:
        """
        Run several reports (all by default).

        With ``parallel_reports`` enabled and more than one worker the
        reports run concurrently; the returned mapping is still ordered by
        report number.
        """
        selected = self.available_reports() if names is None else list(names)
        for name in selected:
            self._definition(name)
        selected = sorted(set(selected), key=lambda name: REPORTS[name].number)

        parallel = self.settings.parallel_reports and self.settings.max_workers > 1
        logger.info(
            "Running reports",
            app=self.settings.app_name,
            version=self.settings.app_version,
            dataset=self.dataset.name,
            reports=len(selected),
            parallel=parallel,
        )

        if parallel and len(selected) > 1:
            with ThreadPoolExecutor(max_workers=self.settings.max_workers) as executor:
                futures = {name: executor.submit(self.run, name) for name in selected}
                return {name: futures[name].result() for name in selected}

        return {name: self.run(name) for name in selected}
