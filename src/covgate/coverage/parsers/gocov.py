"""Go coverage profile parser.

Go test produces coverage profiles with format:
mode: set|count|atomic
<package>/<file>:<startline>.<startcol>,<endline>.<endcol> <numstmt> <count>

Example:
mode: set
github.com/user/pkg/main.go:10.2,12.16 3 1
github.com/user/pkg/main.go:15.2,20.16 5 0

- mode: set (0/1), count (hit count), atomic (thread-safe count)
- numstmt: number of statements in block
- count: execution count (0 = not covered)

Profiles merged by concatenation repeat blocks (and the mode line); a block
range seen twice keeps its highest count. Go profiles carry no branch or
function data.
"""

import re

import structlog

from covgate.core.errors import CoverageParseError
from covgate.coverage.models import CoverageResult, FileCoverage, LineCoverage

from .base import missing_lines, sum_metrics

log = structlog.get_logger(__name__)

_BLOCK_RE = re.compile(r"^(.+):(\d+)\.(\d+),(\d+)\.(\d+) (\d+) (\d+)$")

# (start_line, start_col, end_line, end_col)
_BlockRange = tuple[int, int, int, int]


class GocovParser:
    """Parser for Go coverage profiles."""

    @property
    def format_id(self) -> str:
        return "go"

    def can_parse(self, content: str, path_hint: str | None = None) -> bool:  # noqa: ARG002
        """First non-blank line is a mode line or a coverage block."""
        for line in content.splitlines():
            stripped = line.strip()
            if stripped:
                return stripped.startswith("mode:") or bool(_BLOCK_RE.match(stripped))
        return False

    def parse_content(self, content: str) -> CoverageResult:
        """Parse a Go coverage profile into a CoverageResult."""
        # path -> block range -> (num_statements, count)
        blocks: dict[str, dict[_BlockRange, tuple[int, int]]] = {}
        saw_mode = False
        saw_content = False

        for raw_line in content.splitlines():
            line = raw_line.strip()
            if not line:
                continue
            saw_content = True
            if line.startswith("mode:"):
                saw_mode = True
                continue
            match = _BLOCK_RE.match(line)
            if match is None:
                log.debug("go_invalid_block", line=line)
                continue
            path = match.group(1)
            block: _BlockRange = (
                int(match.group(2)),
                int(match.group(3)),
                int(match.group(4)),
                int(match.group(5)),
            )
            num_statements, count = int(match.group(6)), int(match.group(7))
            file_blocks = blocks.setdefault(path, {})
            previous = file_blocks.get(block)
            if previous is None or count > previous[1]:
                file_blocks[block] = (num_statements, count)

        if saw_content and not saw_mode and not blocks:
            raise CoverageParseError.malformed(
                self.format_id, "no mode line and no coverage blocks"
            )

        files = [self._build_file(path, file_blocks) for path, file_blocks in blocks.items()]
        return CoverageResult(format_id=self.format_id, metrics=sum_metrics(files), files=files)

    def _build_file(
        self, path: str, file_blocks: dict[_BlockRange, tuple[int, int]]
    ) -> FileCoverage:
        line_counts: dict[int, int] = {}
        statements = covered_statements = 0
        for (start_line, _, end_line, _), (num_statements, count) in file_blocks.items():
            statements += num_statements
            if count > 0:
                covered_statements += num_statements
            for number in range(start_line, end_line + 1):
                line_counts[number] = max(line_counts.get(number, 0), count)

        lines = [
            LineCoverage(line_number=number, count=line_counts[number])
            for number in sorted(line_counts)
        ]
        return FileCoverage(
            path=path,
            statements=statements,
            covered_statements=covered_statements,
            lines=lines,
            missing_lines=missing_lines(lines),
            partial_lines=[],
        )
