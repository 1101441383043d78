"""Tests for error types and codes."""

import pytest

from covgate.core.errors import (
    ConfigError,
    CoverageParseError,
    CovGateError,
    ErrorCode,
    JUnitParseError,
    UnsupportedFormatError,
)


class TestErrorCode:
    """Error code value tests."""

    @pytest.mark.parametrize(
        ("code", "expected_range"),
        [
            (ErrorCode.CONFIG_PARSE_ERROR, 2000),
            (ErrorCode.CONFIG_INVALID_VALUE, 2000),
            (ErrorCode.CONFIG_FILE_NOT_FOUND, 2000),
            (ErrorCode.COVERAGE_MALFORMED, 3000),
            (ErrorCode.COVERAGE_MISSING_ELEMENT, 3000),
            (ErrorCode.COVERAGE_FORMAT_UNDETECTED, 3000),
            (ErrorCode.COVERAGE_FORMAT_UNSUPPORTED, 3000),
            (ErrorCode.TEST_RESULTS_MALFORMED, 4000),
            (ErrorCode.TEST_RESULTS_MISSING_ROOT, 4000),
        ],
    )
    def test_given_error_code_when_checked_then_in_correct_range(
        self, code: ErrorCode, expected_range: int
    ) -> None:
        """Error codes fall within their designated numeric range."""
        # Given
        error_code = code

        # When
        value = error_code.value

        # Then
        assert expected_range <= value < expected_range + 1000


class TestCovGateError:
    """Base error behavior tests."""

    def test_given_error_when_to_dict_then_serializes_all_fields(self) -> None:
        """Error serializes to dict with all required fields."""
        # Given
        error = CovGateError(
            code=ErrorCode.CONFIG_PARSE_ERROR,
            message="Test message",
            details={"key": "value"},
        )

        # When
        result = error.to_dict()

        # Then
        assert result == {
            "code": 2001,
            "error": "CONFIG_PARSE_ERROR",
            "message": "Test message",
            "details": {"key": "value"},
        }

    def test_given_error_when_str_then_human_readable(self) -> None:
        """Error string representation is human readable."""
        # Given
        error = CovGateError(code=ErrorCode.COVERAGE_MALFORMED, message="Something broke")

        # When
        result = str(error)

        # Then
        assert result == "[3001] COVERAGE_MALFORMED: Something broke"

    def test_given_error_when_raised_then_catchable_as_exception(self) -> None:
        """Errors are regular exceptions."""
        with pytest.raises(CovGateError):
            raise ConfigError.file_not_found("/x.yml")


class TestConfigError:
    """ConfigError factory method tests."""

    @pytest.mark.parametrize(
        ("factory", "kwargs", "expected_code"),
        [
            (
                "parse_error",
                {"path": "/foo", "reason": "bad yaml"},
                ErrorCode.CONFIG_PARSE_ERROR,
            ),
            (
                "invalid_value",
                {"field": "status.patch.target", "value": -1, "reason": "negative"},
                ErrorCode.CONFIG_INVALID_VALUE,
            ),
            ("file_not_found", {"path": "/missing"}, ErrorCode.CONFIG_FILE_NOT_FOUND),
        ],
    )
    def test_given_factory_when_called_then_correct_code(
        self, factory: str, kwargs: dict[str, object], expected_code: ErrorCode
    ) -> None:
        """Factory methods produce errors with correct error codes."""
        # Given
        factory_method = getattr(ConfigError, factory)

        # When
        error = factory_method(**kwargs)

        # Then
        assert error.code == expected_code

    def test_given_parse_error_when_created_then_path_in_details(self) -> None:
        """Parse error includes file path in details."""
        # Given
        path = "/codecov.yml"
        reason = "invalid syntax"

        # When
        error = ConfigError.parse_error(path, reason)

        # Then
        assert error.details["path"] == path
        assert reason in error.message


class TestCoverageParseError:
    """CoverageParseError factory tests."""

    def test_given_malformed_when_created_then_names_format(self) -> None:
        """Malformed errors carry the rejecting format."""
        # Given / When
        error = CoverageParseError.malformed("lcov", "bad record")

        # Then
        assert error.message == "Invalid lcov coverage: bad record"
        assert error.format_id == "lcov"
        assert error.code == ErrorCode.COVERAGE_MALFORMED

    def test_given_missing_element_when_created_then_names_element(self) -> None:
        """Missing-element errors name the element."""
        # Given / When
        error = CoverageParseError.missing_element("jacoco", "report")

        # Then
        assert error.message == "Invalid jacoco coverage: missing report element"
        assert error.details["element"] == "report"

    def test_given_undetected_when_created_then_lists_formats(self) -> None:
        """Detection failures list the supported formats and have no format."""
        # Given / When
        error = CoverageParseError.undetected("out/cov.dat", ["lcov", "go"])

        # Then
        assert error.message == (
            "Unable to detect coverage format for file: out/cov.dat. Supported formats: lcov, go"
        )
        assert error.format_id is None

    def test_given_undetected_without_hint_when_created_then_no_file_part(self) -> None:
        """Without a path hint the message omits the file."""
        error = CoverageParseError.undetected(None, ["lcov"])
        assert error.message == "Unable to detect coverage format. Supported formats: lcov"


class TestUnsupportedFormatError:
    """UnsupportedFormatError tests."""

    def test_given_unknown_token_when_created_then_lists_valid_formats(self) -> None:
        """The message names the token and the valid formats."""
        # Given / When
        error = UnsupportedFormatError.unsupported("simplecov", ["lcov", "go"])

        # Then
        assert error.code == ErrorCode.COVERAGE_FORMAT_UNSUPPORTED
        assert error.message == "Unsupported coverage format: 'simplecov'. Valid formats: lcov, go"
        assert error.details["format"] == "simplecov"


class TestJUnitParseError:
    """JUnitParseError factory tests."""

    def test_given_unknown_root_when_created_then_names_root(self) -> None:
        # Given / When
        error = JUnitParseError.missing_root("invalid")

        # Then
        assert error.code == ErrorCode.TEST_RESULTS_MISSING_ROOT
        assert error.message == (
            "Invalid JUnit XML: expected a testsuites or testsuite root, got <invalid>"
        )
        assert error.details == {"root": "invalid"}

    def test_given_malformed_when_to_dict_then_reason_kept(self) -> None:
        error = JUnitParseError.malformed("syntax error: line 1, column 0")
        assert error.to_dict()["details"] == {"reason": "syntax error: line 1, column 0"}
