"""Unit tests for exceptions module."""

import pytest

from awaylog.core.exceptions import (
    AwaylogError,
    ConfigurationError,
    ConflictError,
    ErrorKind,
    NotFoundError,
    StorageError,
    ValidationError,
)


class TestAwaylogError:
    """Tests for base exception."""

    def test_basic_error(self) -> None:
        """Test basic error creation."""
        error = AwaylogError("Something went wrong")

        assert str(error) == "Something went wrong"
        assert error.message == "Something went wrong"
        assert error.details == {}

    def test_error_with_details(self) -> None:
        """Test error with details dict."""
        error = AwaylogError("Save failed", details={"path": "/tmp/data.json"})

        assert "Save failed" in str(error)
        assert "Details:" in str(error)
        assert error.details["path"] == "/tmp/data.json"

    def test_is_catchable_as_base_type(self) -> None:
        """Test that specific errors can be caught as base type."""
        with pytest.raises(AwaylogError):
            raise ConflictError("Entry already has a return time")


class TestErrorKinds:
    """Each error carries a distinct, stable kind."""

    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (ValidationError("bad"), ErrorKind.VALIDATION),
            (NotFoundError("missing"), ErrorKind.NOT_FOUND),
            (ConflictError("done"), ErrorKind.CONFLICT),
            (StorageError("down"), ErrorKind.STORAGE),
            (ConfigurationError("unset"), ErrorKind.CONFIGURATION),
        ],
    )
    def test_kind(self, error, kind) -> None:
        assert error.kind == kind
        assert error.to_dict()["error"] == kind.value

    def test_kinds_are_distinct(self) -> None:
        kinds = {ValidationError.kind, NotFoundError.kind, ConflictError.kind, StorageError.kind}
        assert len(kinds) == 4


class TestSpecificErrors:
    """Tests for the extra context carried by each error."""

    def test_validation_error_records_field(self) -> None:
        error = ValidationError("Missing returnTime", field="returnTime")

        assert error.field == "returnTime"
        assert error.to_dict() == {
            "error": "validation",
            "message": "Missing returnTime",
            "details": {"field": "returnTime"},
        }

    def test_not_found_records_entry_id(self) -> None:
        error = NotFoundError("Entry not found", entry_id="abc")

        assert error.entry_id == "abc"
        assert error.details == {"entry_id": "abc"}

    def test_conflict_records_entry_id(self) -> None:
        error = ConflictError("Entry already has a return time", entry_id="abc")
        assert error.details["entry_id"] == "abc"

    def test_storage_error_prefixes_backend(self) -> None:
        error = StorageError("Could not read data file", backend="file")

        assert str(error) == "[file] Could not read data file"
        assert error.backend == "file"

    def test_storage_error_without_backend(self) -> None:
        assert str(StorageError("down")) == "down"
