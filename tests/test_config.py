import pytest
from pydantic import ValidationError

from core.config import DocumentStoreSettings, Settings
from core.settings import PaymentSettings


def test_firestore_backend_requires_credentials(monkeypatch):
    monkeypatch.delenv("DOCUMENT_STORE__SERVICE_ACCOUNT_JSON", raising=False)
    monkeypatch.delenv("DOCUMENT_STORE__SERVICE_ACCOUNT_PATH", raising=False)
    with pytest.raises(ValidationError) as exc_info:
        Settings(document_store=DocumentStoreSettings(backend="firestore"))
    assert "DOCUMENT_STORE__SERVICE_ACCOUNT_JSON" in str(exc_info.value)


def test_unknown_backend_rejected():
    with pytest.raises(ValidationError):
        Settings(document_store=DocumentStoreSettings(backend="mongo"))


def test_pesapal_credentials_required(monkeypatch):
    monkeypatch.delenv("PESAPAL__CONSUMER_KEY", raising=False)
    monkeypatch.delenv("PESAPAL__CONSUMER_SECRET", raising=False)
    with pytest.raises(ValidationError) as exc_info:
        PaymentSettings(_env_file=None)
    assert "PESAPAL__CONSUMER_KEY" in str(exc_info.value)


def test_callback_urls():
    s = Settings(
        APP_BASE_URL="https://shop.example.com/",
        PUBLIC_API_URL=None,
        document_store=DocumentStoreSettings(backend="memory"),
    )
    assert s.payment_redirect_url == "https://shop.example.com/#/pesapal-callback"
    assert s.payment_notification_url == "https://shop.example.com/api/pesapal/callback"

    s = Settings(
        PUBLIC_API_URL="https://api.example.com/api",
        document_store=DocumentStoreSettings(backend="memory"),
    )
    assert s.payment_notification_url == "https://api.example.com/api/pesapal/callback"


def test_cors_origins_accept_comma_list():
    s = Settings(
        APP_BASE_URL="https://shop.example.com",
        CORS_ORIGINS="https://a.example.com, https://b.example.com",
        document_store=DocumentStoreSettings(backend="memory"),
    )
    assert s.cors_origins == ["https://a.example.com", "https://b.example.com", "https://shop.example.com"]


def test_cors_origins_comma_list_from_environment(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", "https://a.example.com,https://b.example.com")
    s = Settings(
        APP_BASE_URL="https://shop.example.com",
        document_store=DocumentStoreSettings(backend="memory"),
    )
    assert s.CORS_ORIGINS == ["https://a.example.com", "https://b.example.com"]


def test_cors_origins_json_from_environment(monkeypatch):
    monkeypatch.setenv("CORS_ORIGINS", '["https://a.example.com"]')
    s = Settings(
        APP_BASE_URL="https://a.example.com",
        document_store=DocumentStoreSettings(backend="memory"),
    )
    assert s.cors_origins == ["https://a.example.com"]
