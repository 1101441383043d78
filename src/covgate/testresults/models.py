"""Test result data model.

A parsed JUnit file is a JUnitReport of JUnitSuites of JUnitCases. Across
files, results are flattened into CaseRecords (a case plus the suite it ran
in) inside an AggregatedTestResults, which is also the base snapshot format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class CaseStatus(str, Enum):
    """Outcome of one test case."""

    PASSED = "passed"
    FAILED = "failed"
    ERROR = "error"
    SKIPPED = "skipped"

    @property
    def is_failing(self) -> bool:
        return self in (CaseStatus.FAILED, CaseStatus.ERROR)


@dataclass(frozen=True, slots=True)
class CaseFailure:
    """The ``<failure>`` or ``<error>`` element of a failing case."""

    message: str
    type: str | None = None
    content: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, "type": self.type, "content": self.content}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaseFailure:
        return cls(
            message=str(data.get("message", "")),
            type=data.get("type"),
            content=data.get("content"),
        )


@dataclass(frozen=True, slots=True)
class JUnitCase:
    classname: str
    name: str
    time: float = 0.0
    status: CaseStatus = CaseStatus.PASSED
    failure: CaseFailure | None = None


@dataclass(slots=True)
class JUnitSuite:
    """One ``<testsuite>``; ``failures`` and ``errors`` are counted separately."""

    name: str
    tests: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0
    time: float = 0.0
    cases: list[JUnitCase] = field(default_factory=list)


@dataclass(slots=True)
class JUnitReport:
    """One parsed JUnit XML file."""

    name: str | None = None
    tests: int = 0
    failures: int = 0
    errors: int = 0
    skipped: int = 0
    time: float = 0.0
    suites: list[JUnitSuite] = field(default_factory=list)


@dataclass(frozen=True, slots=True)
class CaseRecord:
    """A test case together with the suite it ran in.

    Cases are identified across runs by ``key``: suite name, classname and
    case name.
    """

    suite_name: str
    classname: str
    name: str
    status: CaseStatus = CaseStatus.PASSED
    time: float = 0.0
    failure: CaseFailure | None = None

    @property
    def key(self) -> tuple[str, str, str]:
        return (self.suite_name, self.classname, self.name)

    @property
    def label(self) -> str:
        return "::".join(self.key)

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "suite": self.suite_name,
            "classname": self.classname,
            "name": self.name,
            "status": self.status.value,
            "time": self.time,
        }
        if self.failure is not None:
            data["failure"] = self.failure.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CaseRecord:
        failure = data.get("failure")
        return cls(
            suite_name=str(data.get("suite", "")),
            classname=str(data.get("classname", "")),
            name=str(data.get("name", "")),
            status=CaseStatus(data.get("status", CaseStatus.PASSED.value)),
            time=float(data.get("time", 0.0)),
            failure=CaseFailure.from_dict(failure) if failure else None,
        )


@dataclass(frozen=True, slots=True)
class ResultsComparison:
    """Changes of a current test run against a base run.

    Deltas are current minus base. ``tests_broken`` holds cases that were
    not failing in the base and fail now; ``tests_fixed`` holds cases that
    failed in the base and pass now.
    """

    tests_added: list[CaseRecord] = field(default_factory=list)
    tests_removed: list[CaseRecord] = field(default_factory=list)
    tests_broken: list[CaseRecord] = field(default_factory=list)
    tests_fixed: list[CaseRecord] = field(default_factory=list)
    delta_total: int = 0
    delta_passed: int = 0
    delta_failed: int = 0
    delta_skipped: int = 0

    @property
    def has_changes(self) -> bool:
        return bool(
            self.tests_added
            or self.tests_removed
            or self.tests_broken
            or self.tests_fixed
            or self.delta_total
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "tests_added": [c.to_dict() for c in self.tests_added],
            "tests_removed": [c.to_dict() for c in self.tests_removed],
            "tests_broken": [c.to_dict() for c in self.tests_broken],
            "tests_fixed": [c.to_dict() for c in self.tests_fixed],
            "delta_total": self.delta_total,
            "delta_passed": self.delta_passed,
            "delta_failed": self.delta_failed,
            "delta_skipped": self.delta_skipped,
        }


@dataclass(slots=True)
class AggregatedTestResults:
    """Totals across JUnit files.

    ``failed_tests`` counts failures and errors together. ``pass_rate`` is
    the passed share of all tests (0-100, two decimals, 0 with no tests).
    """

    total_tests: int = 0
    passed_tests: int = 0
    failed_tests: int = 0
    skipped_tests: int = 0
    total_time: float = 0.0
    pass_rate: float = 0.0
    cases: list[CaseRecord] = field(default_factory=list)
    comparison: ResultsComparison | None = None

    @property
    def failed_cases(self) -> list[CaseRecord]:
        return [case for case in self.cases if case.status.is_failing]

    def to_dict(self) -> dict[str, Any]:
        data: dict[str, Any] = {
            "total_tests": self.total_tests,
            "passed_tests": self.passed_tests,
            "failed_tests": self.failed_tests,
            "skipped_tests": self.skipped_tests,
            "total_time": self.total_time,
            "pass_rate": self.pass_rate,
            "cases": [c.to_dict() for c in self.cases],
        }
        if self.comparison is not None:
            data["comparison"] = self.comparison.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> AggregatedTestResults:
        """Load a snapshot written by ``to_dict``; a stored comparison is dropped."""
        return cls(
            total_tests=int(data.get("total_tests", 0)),
            passed_tests=int(data.get("passed_tests", 0)),
            failed_tests=int(data.get("failed_tests", 0)),
            skipped_tests=int(data.get("skipped_tests", 0)),
            total_time=float(data.get("total_time", 0.0)),
            pass_rate=float(data.get("pass_rate", 0.0)),
            cases=[CaseRecord.from_dict(c) for c in data.get("cases", [])],
        )
