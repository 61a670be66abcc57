"""JSON report: the whole suite plus the computed comparison."""

from __future__ import annotations

import json

from dbcompare.core.comparison import build_comparison
from dbcompare.models.result import BenchmarkSuite
from dbcompare.reporters.base import FileReporter


class JSONReporter(FileReporter):
    extension = "json"

    @property
    def name(self) -> str:
        return "JSON"

    def _write(self, suite: BenchmarkSuite) -> None:
        payload = suite.model_dump(mode="json")
        payload["comparison"] = build_comparison(suite).model_dump(mode="json")
        self.filename.write_text(json.dumps(payload, indent=2), encoding="utf-8")
