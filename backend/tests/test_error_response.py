import logging
import pytest
from fastapi import HTTPException

from fabquote.utils.errors import (
    ConflictError,
    NotFoundError,
    RepositoryError,
    error_envelope,
    error_response,
)


def test_error_response_logs(caplog):
    caplog.set_level(logging.ERROR, logger="fabquote.utils.errors")
    with pytest.raises(HTTPException):
        raise error_response("Invalid", {"field": "bad"})
    assert any(
        "Invalid" in r.getMessage() and "'field': 'bad'" in r.getMessage()
        for r in caplog.records
    )


def test_error_envelope_omits_empty_field_errors():
    assert error_envelope("Quote not found") == {
        "success": False,
        "error": {"message": "Quote not found"},
    }
    assert error_envelope("Invalid", {"title": "required"})["error"]["field_errors"] == {
        "title": "required"
    }


def test_domain_errors_map_to_status_codes():
    assert NotFoundError("x").status_code == 404
    assert ConflictError("x").status_code == 409
    exc = RepositoryError("Unable to save quote")
    assert exc.status_code == 500
    assert exc.field_errors == {}
