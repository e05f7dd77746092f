import base64
from decimal import Decimal

import requests

from schemas.invoice import InvoiceRecord
from utils.email import build_invoice_message, send_invoice_email


def _record(**overrides) -> InvoiceRecord:
     data = dict(
          invoice_no="INV-202503-456789",
          date="2025/03/15, 10:30:00",
          pf_payment_id="PF123456789",
          sku="WA-01",
          amount=Decimal("1499"),
          customer_name="Jane Doe",
          customer_email="jane@example.com",
     )
     data.update(overrides)
     return InvoiceRecord(**data)


def test_message_addresses_customer_and_copies_admin(settings):
     message = build_invoice_message(_record(), b"%PDF", settings)

     assert message["to"] == [{"email": "jane@example.com", "name": "Jane Doe"}]
     assert message["cc"] == [{"email": settings.admin_email}]
     assert message["subject"] == "Wykies Automation Invoice INV-202503-456789"
     assert "Amount: R 1499.00" in message["textContent"]
     assert "PayFast ID: PF123456789" in message["textContent"]
     attachment = message["attachment"][0]
     assert attachment["name"] == "INV-202503-456789.pdf"
     assert base64.b64decode(attachment["content"]) == b"%PDF"


def test_message_without_customer_email_goes_to_admin(settings):
     message = build_invoice_message(_record(customer_email=""), b"%PDF", settings)

     assert message["to"] == [{"email": settings.admin_email}]
     assert "cc" not in message


def test_send_posts_to_brevo(settings, outbound):
     result = send_invoice_email(_record(), b"%PDF", settings)

     assert result.ok
     assert result.detail == "<msg-1@brevo>"
     call = outbound.to("brevo")[0]
     assert call["headers"]["api-key"] == "test-brevo-key"
     assert call["timeout"] == settings.http_timeout


def test_send_reports_http_error(settings, outbound):
     outbound.email_status = 401
     result = send_invoice_email(_record(), b"%PDF", settings)

     assert not result.ok
     assert "401" in result.error


def test_send_reports_network_error(settings, monkeypatch):
     def down(*args, **kwargs):
          raise requests.Timeout("timed out")

     monkeypatch.setattr("requests.post", down)
     result = send_invoice_email(_record(), b"%PDF", settings)

     assert not result.ok
     assert result.channel == "email"


def test_send_without_api_key(settings, outbound):
     no_key = settings.model_copy(update={"brevo_api_key": ""})
     result = send_invoice_email(_record(), b"%PDF", no_key)

     assert not result.ok
     assert outbound.calls == []
