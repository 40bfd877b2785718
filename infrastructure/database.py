"""
Document store configuration and lifecycle.

The ledger is built once by the application lifespan and handed to request
handlers through dependencies; nothing here is a module-level singleton.
"""
from __future__ import annotations

import json
from typing import Optional

from core.config import DocumentStoreSettings, settings
from core.logging_config import get_logger
from domain.order.repository import OrderLedger


logger = get_logger(__name__)

FIREBASE_APP_NAME = "pesapal-checkout"


def _load_credentials(cfg: DocumentStoreSettings):
    from firebase_admin import credentials

    if cfg.service_account_json:
        try:
            info = json.loads(cfg.service_account_json)
        except json.JSONDecodeError as exc:
            raise RuntimeError(
                "DOCUMENT_STORE__SERVICE_ACCOUNT_JSON is not valid JSON; paste the full service account key content"
            ) from exc
        source = info
    elif cfg.service_account_path:
        source = cfg.service_account_path
    else:
        raise RuntimeError(
            "Firestore credentials are not configured (DOCUMENT_STORE__SERVICE_ACCOUNT_JSON "
            "or DOCUMENT_STORE__SERVICE_ACCOUNT_PATH)"
        )
    try:
        return credentials.Certificate(source)
    except (ValueError, IOError) as exc:
        raise RuntimeError(f"Invalid Firestore service account credentials: {exc}") from exc


def _create_firestore_ledger(cfg: DocumentStoreSettings) -> OrderLedger:
    import firebase_admin
    from firebase_admin import firestore_async

    from infrastructure.repositories.firestore_order_ledger import FirestoreOrderLedger

    options = {"projectId": cfg.project_id} if cfg.project_id else None
    app = firebase_admin.initialize_app(_load_credentials(cfg), options=options, name=FIREBASE_APP_NAME)
    client = firestore_async.client(app)

    def _close() -> None:
        firebase_admin.delete_app(app)

    return FirestoreOrderLedger(
        client,
        orders_collection=cfg.orders_collection,
        users_collection=cfg.users_collection,
        on_close=_close,
    )


def create_order_ledger(config: Optional[DocumentStoreSettings] = None) -> OrderLedger:
    """Build the configured ledger; the caller owns it and must ``aclose()`` it."""
    cfg = config or settings.document_store
    backend = (cfg.backend or "firestore").lower()
    if backend == "memory":
        from infrastructure.repositories.inmemory_order_ledger import InMemoryOrderLedger
        logger.warning("document_store_in_memory", message="Using in-memory order ledger (not persistent)")
        return InMemoryOrderLedger()
    ledger = _create_firestore_ledger(cfg)
    logger.info(
        "document_store_initialized",
        backend="firestore",
        orders_collection=cfg.orders_collection,
        users_collection=cfg.users_collection,
    )
    return ledger
