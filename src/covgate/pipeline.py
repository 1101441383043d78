"""End-to-end coverage run.

parse each input -> aggregate -> apply ignore globs -> compare with base
-> patch coverage -> project/patch status checks

JUnit test results, when given, run alongside: parse -> aggregate ->
compare with the base run. They are reported but never gate the run.

The parse-failure policy lives here: with ``fail_fast`` the first
unparsable input aborts the run, otherwise it is skipped and reported.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any

import structlog

from covgate.config.models import CovGateConfig
from covgate.core.errors import CoverageParseError, CovGateError, JUnitParseError
from covgate.coverage.aggregate import aggregate_results, apply_ignore
from covgate.coverage.compare import compare_results
from covgate.coverage.models import (
    AggregatedCoverageResults,
    CoverageResult,
    PatchCoverageResults,
)
from covgate.coverage.parsers import AUTO, ParserRegistry, build_registry
from covgate.coverage.patch import analyze_patch_coverage, attach_patch_coverage
from covgate.coverage.thresholds import (
    StatusCheckResult,
    check_patch_status,
    check_project_status,
)
from covgate.testresults import (
    AggregatedTestResults,
    JUnitReport,
    aggregate_test_results,
    compare_test_results,
    parse_junit_xml,
)

log = structlog.get_logger(__name__)


@dataclass(frozen=True, slots=True)
class CoverageInput:
    """A report payload and the name it came from (used as a path hint)."""

    path: str
    content: str

    @classmethod
    def from_path(cls, path: Path) -> CoverageInput:
        return cls(path=str(path), content=path.read_text(encoding="utf-8", errors="replace"))


@dataclass(frozen=True, slots=True)
class ParseFailure:
    path: str
    error: CovGateError

    def to_dict(self) -> dict[str, Any]:
        return {"path": self.path, **self.error.to_dict()}


@dataclass(slots=True)
class RunOutcome:
    """Everything one run produced.

    ``results`` is None when no input could be parsed; the status checks are
    then not evaluated either.
    """

    results: AggregatedCoverageResults | None = None
    patch: PatchCoverageResults | None = None
    tests: AggregatedTestResults | None = None
    project_status: StatusCheckResult | None = None
    patch_status: StatusCheckResult | None = None
    formats: list[str] = field(default_factory=list)
    skipped: list[ParseFailure] = field(default_factory=list)

    @property
    def checks(self) -> list[StatusCheckResult]:
        return [c for c in (self.project_status, self.patch_status) if c is not None]

    def to_dict(self) -> dict[str, Any]:
        return {
            "results": self.results.to_dict() if self.results else None,
            "patch": self.patch.to_dict() if self.patch else None,
            "tests": self.tests.to_dict() if self.tests else None,
            "status": {
                "project": self.project_status.to_dict() if self.project_status else None,
                "patch": self.patch_status.to_dict() if self.patch_status else None,
            },
            "formats": list(self.formats),
            "skipped": [failure.to_dict() for failure in self.skipped],
        }


def parse_inputs(
    inputs: Sequence[CoverageInput],
    *,
    registry: ParserRegistry,
    format_id: str = AUTO,
    fail_fast: bool = False,
) -> tuple[list[CoverageResult], list[ParseFailure]]:
    """Parse every input, applying the fail-fast/skip policy.

    Raises:
        CoverageParseError: On the first failure when fail_fast is set.
    """
    results: list[CoverageResult] = []
    failures: list[ParseFailure] = []
    for item in inputs:
        try:
            result = registry.parse_content(item.content, path_hint=item.path, format_id=format_id)
        except CoverageParseError as e:
            if fail_fast:
                log.error("coverage_parse_failed", path=item.path, error=e.message)
                raise
            log.warning("coverage_file_skipped", path=item.path, error=e.message)
            failures.append(ParseFailure(path=item.path, error=e))
            continue
        log.info(
            "coverage_parsed",
            path=item.path,
            format=result.format_id,
            files=len(result.files),
            line_rate=result.metrics.line_rate,
        )
        results.append(result)
    return results, failures


def parse_test_inputs(
    inputs: Sequence[CoverageInput], *, fail_fast: bool = False
) -> tuple[list[JUnitReport], list[ParseFailure]]:
    """Parse JUnit XML inputs with the same fail-fast/skip policy as coverage.

    Raises:
        JUnitParseError: On the first failure when fail_fast is set.
    """
    reports: list[JUnitReport] = []
    failures: list[ParseFailure] = []
    for item in inputs:
        try:
            report = parse_junit_xml(item.content)
        except JUnitParseError as e:
            if fail_fast:
                log.error("junit_parse_failed", path=item.path, error=e.message)
                raise
            log.warning("junit_file_skipped", path=item.path, error=e.message)
            failures.append(ParseFailure(path=item.path, error=e))
            continue
        log.info("junit_parsed", path=item.path, suites=len(report.suites), tests=report.tests)
        reports.append(report)
    return reports, failures


def evaluate_test_results(
    inputs: Sequence[CoverageInput],
    *,
    base: dict[str, Any] | AggregatedTestResults | None = None,
    fail_fast: bool = False,
) -> tuple[AggregatedTestResults | None, list[ParseFailure]]:
    """Aggregate JUnit inputs and compare them with a base run.

    The aggregate is None when no input could be parsed.
    """
    reports, failures = parse_test_inputs(inputs, fail_fast=fail_fast)
    if not reports:
        if inputs:
            log.warning("no_test_results_parsed", inputs=len(inputs), skipped=len(failures))
        return None, failures

    aggregated = aggregate_test_results(reports)
    if base is not None:
        base_results = (
            base
            if isinstance(base, AggregatedTestResults)
            else AggregatedTestResults.from_dict(base)
        )
        aggregated = replace(aggregated, comparison=compare_test_results(base_results, aggregated))
    log.info(
        "test_results_evaluated",
        tests=aggregated.total_tests,
        failed=aggregated.failed_tests,
        pass_rate=aggregated.pass_rate,
    )
    return aggregated, failures


def run_pipeline(
    inputs: Sequence[CoverageInput],
    *,
    config: CovGateConfig,
    diff: str | None = None,
    base: dict[str, Any] | AggregatedCoverageResults | None = None,
    registry: ParserRegistry | None = None,
    format_id: str = AUTO,
    name: str | None = None,
    flags: Sequence[str] = (),
    test_inputs: Sequence[CoverageInput] = (),
    base_tests: dict[str, Any] | AggregatedTestResults | None = None,
) -> RunOutcome:
    """Run the full evaluation over in-memory coverage payloads.

    Args:
        inputs: Coverage payloads to parse.
        config: Resolved configuration.
        diff: Unified diff of the change under test; no patch check without it.
        base: Base snapshot (as written by AggregatedCoverageResults.to_dict).
        registry: Parser registry; the default registry when None.
        format_id: Force a format for every input, or "auto".
        name: Label stored on the aggregate.
        flags: Grouping tags stored on the aggregate.
        test_inputs: JUnit XML payloads; no test results without them.
        base_tests: Base test snapshot (as written by
            AggregatedTestResults.to_dict).

    Raises:
        CoverageParseError: With config.fail_fast, on the first unparsable
            input. Without it, unparsable inputs end up in outcome.skipped.
        JUnitParseError: Likewise for test_inputs.
    """
    registry = registry or build_registry()
    tests, test_failures = evaluate_test_results(
        test_inputs, base=base_tests, fail_fast=config.fail_fast
    )
    results, failures = parse_inputs(
        inputs, registry=registry, format_id=format_id, fail_fast=config.fail_fast
    )
    outcome = RunOutcome(tests=tests, skipped=[*failures, *test_failures])
    if not results:
        log.warning("no_coverage_parsed", inputs=len(inputs), skipped=len(failures))
        return outcome

    outcome.formats = sorted({r.format_id for r in results})
    aggregated = aggregate_results(results, name=name, flags=flags)
    aggregated = apply_ignore(aggregated, config.ignore)

    if base is not None:
        base_results = (
            base
            if isinstance(base, AggregatedCoverageResults)
            else AggregatedCoverageResults.from_dict(base)
        )
        aggregated = replace(aggregated, comparison=compare_results(base_results, aggregated))

    if diff is not None:
        outcome.patch = analyze_patch_coverage(diff, aggregated)
        aggregated = attach_patch_coverage(aggregated, outcome.patch)

    outcome.results = aggregated
    outcome.project_status = check_project_status(aggregated, config.status.project)
    outcome.patch_status = check_patch_status(outcome.patch, config.status.patch)
    log.info(
        "coverage_evaluated",
        line_rate=aggregated.line_rate,
        branch_rate=aggregated.branch_rate,
        project=outcome.project_status.status,
        patch=outcome.patch_status.status,
    )
    return outcome
