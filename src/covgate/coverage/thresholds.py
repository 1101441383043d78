"""Project and patch status checks.

Each check returns a StatusCheckResult. ``informational`` is copied from the
config unchanged; it never flips the status, it only tells the caller a
failure should not break the build.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Literal

from covgate.config.models import DEFAULT_PATCH_TARGET, PatchStatusConfig, ProjectStatusConfig
from covgate.coverage.models import AggregatedCoverageResults, PatchCoverageResults

Status = Literal["success", "failure"]


@dataclass(frozen=True, slots=True)
class StatusCheckResult:
    """Verdict of one status check."""

    status: Status
    description: str
    informational: bool = False

    @property
    def passed(self) -> bool:
        return self.status == "success"

    @property
    def blocking(self) -> bool:
        """A failure the build should break on."""
        return not self.passed and not self.informational

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status,
            "description": self.description,
            "informational": self.informational,
        }


def _status(passed: bool) -> Status:
    return "success" if passed else "failure"


def _against_target(value: float, target: float, informational: bool) -> StatusCheckResult:
    passed = value >= target
    return StatusCheckResult(
        status=_status(passed),
        description=f"{value:.2f}% {'>=' if passed else '<'} target {target:g}%",
        informational=informational,
    )


def check_project_status(
    results: AggregatedCoverageResults, config: ProjectStatusConfig
) -> StatusCheckResult:
    """Check the overall line rate.

    A numeric target is an absolute floor (inclusive). With ``"auto"`` the
    line rate may not drop more than ``threshold`` points below the base;
    without a base comparison the check passes.
    """
    current = results.line_rate
    if config.target != "auto":
        return _against_target(current, float(config.target), config.informational)

    if results.comparison is None:
        return StatusCheckResult(
            status="success",
            description=f"{current:.2f}% (No base report)",
            informational=config.informational,
        )

    delta = results.comparison.delta_line_rate
    allowed_drop = config.threshold or 0.0
    passed = delta >= -allowed_drop

    if delta >= 0:
        description = f"{current:.2f}% (+{delta:.2f}%) relative to base"
    else:
        description = f"{current:.2f}% ({delta:.2f}%) relative to base"
        if allowed_drop > 0:
            description += f" (threshold {allowed_drop:g}%)"

    return StatusCheckResult(
        status=_status(passed), description=description, informational=config.informational
    )


def check_patch_status(
    patch: PatchCoverageResults | None, config: PatchStatusConfig
) -> StatusCheckResult:
    """Check patch coverage; passes with an N/A note when there is no diff."""
    if patch is None:
        return StatusCheckResult(
            status="success",
            description="Patch coverage: N/A (not in PR context)",
            informational=config.informational,
        )
    target = config.target if isinstance(config.target, int | float) else DEFAULT_PATCH_TARGET
    return _against_target(patch.percentage, float(target), config.informational)


def blocking_failures(results: Iterable[StatusCheckResult]) -> list[StatusCheckResult]:
    """Failures that are not informational."""
    return [result for result in results if result.blocking]
