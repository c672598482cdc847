import pytest
from pydantic import ValidationError

from fabquote.core.config import Settings


def test_cors_origins_accept_comma_list(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example, https://b.example")
    assert Settings().CORS_ORIGINS == ["https://a.example", "https://b.example"]


def test_frontend_url_trailing_slash_removed(monkeypatch):
    monkeypatch.setenv("FRONTEND_URL", "https://shop.example/")
    assert Settings().FRONTEND_URL == "https://shop.example"


def test_status_transitions_are_normalized(monkeypatch):
    monkeypatch.setenv("QUOTE_STATUS_TRANSITIONS", '{"draft": ["sent"], "SENT": ["accepted", "Rejected"]}')
    assert Settings().QUOTE_STATUS_TRANSITIONS == {
        "DRAFT": ["SENT"],
        "SENT": ["ACCEPTED", "REJECTED"],
    }


def test_unknown_status_in_transitions_fails(monkeypatch):
    monkeypatch.setenv("QUOTE_STATUS_TRANSITIONS", '{"DRAFT": ["ARCHIVED"]}')
    with pytest.raises(ValidationError):
        Settings()
