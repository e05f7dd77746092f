"""
Pytest configuration and fixtures.
"""
import os
import tempfile

# main.create_app() runs at import time; keep its default invoice dir out of the repo.
os.environ.setdefault("INVOICE_DIR", tempfile.mkdtemp(prefix="invoices-"))
os.environ.setdefault("LOG_FORMAT", "console")

from datetime import datetime
from typing import Any, Dict, List
from zoneinfo import ZoneInfo

import pytest
from fastapi.testclient import TestClient

from config import Settings
from main import create_app
from services import (
     GatewayService,
     InvoiceRenderer,
     InvoiceService,
     InvoiceStore,
     NotificationService,
     PriceAuthority,
     sign,
)

PASSPHRASE = "jt7NOE43FZPn"
PROCESSED_AT = datetime(2025, 3, 15, 10, 30, 0, tzinfo=ZoneInfo("Africa/Johannesburg"))


class FakeResponse:
     def __init__(self, status_code: int = 200, text: str = "", json_body: Any = None):
          self.status_code = status_code
          self.text = text
          self._json = json_body

     @property
     def ok(self) -> bool:
          return self.status_code < 400

     def json(self):
          if self._json is None:
               raise ValueError("no json")
          return self._json


class FakeRequests:
     """Stands in for requests.post; records every outbound call."""

     def __init__(self):
          self.calls: List[Dict[str, Any]] = []
          self.email_status = 201
          self.postback_error: Exception = None

     def post(self, url, **kwargs):
          self.calls.append({"url": url, **kwargs})
          if "brevo" in url:
               return FakeResponse(self.email_status, text="{}", json_body={"messageId": "<msg-1@brevo>"})
          if self.postback_error is not None:
               raise self.postback_error
          return FakeResponse(200, text="VALID")

     def to(self, fragment: str) -> List[Dict[str, Any]]:
          return [c for c in self.calls if fragment in c["url"]]


@pytest.fixture
def settings(tmp_path) -> Settings:
     return Settings(
          _env_file=None,
          env="sandbox",
          merchant_id="10000100",
          merchant_key="46f0cd694581a",
          passphrase=PASSPHRASE,
          brevo_api_key="test-brevo-key",
          invoice_dir=str(tmp_path / "invoices"),
          log_format="console",
     )


@pytest.fixture
def outbound(monkeypatch) -> FakeRequests:
     fake = FakeRequests()
     monkeypatch.setattr("requests.post", fake.post)
     return fake


@pytest.fixture
def prices(settings) -> PriceAuthority:
     return PriceAuthority(settings.price_table)


@pytest.fixture
def store(settings) -> InvoiceStore:
     store = InvoiceStore(settings.invoice_dir)
     store.ensure_directory()
     return store


@pytest.fixture
def renderer(settings) -> InvoiceRenderer:
     return InvoiceRenderer(settings)


@pytest.fixture
def invoices(settings, store, renderer, outbound) -> InvoiceService:
     return InvoiceService(settings, store, renderer)


@pytest.fixture
def notifications(settings, prices, invoices, outbound) -> NotificationService:
     return NotificationService(settings, prices, GatewayService(settings, prices), invoices)


@pytest.fixture
def make_notification():
     """Build a gateway notification signed with the test passphrase."""

     def _make(passphrase: str = PASSPHRASE, **overrides) -> Dict[str, str]:
          fields = {
               "m_payment_id": "ORDER-42",
               "pf_payment_id": "PF123456789",
               "payment_status": "COMPLETE",
               "item_name": "WA-01",
               "item_description": "WA-01 purchase",
               "amount_gross": "1499.00",
               "amount_fee": "-34.48",
               "amount_net": "1464.52",
               "custom_str1": "WA-01",
               "name_first": "Jane",
               "name_last": "Doe",
               "email_address": "jane@example.com",
               "cell_number": "0821234567",
               "merchant_id": "10000100",
          }
          fields.update(overrides)
          fields = {k: v for k, v in fields.items() if v is not None}
          fields["signature"] = sign(fields, passphrase)
          return fields

     return _make


@pytest.fixture
def client(settings, outbound):
     with TestClient(create_app(settings)) as c:
          yield c
