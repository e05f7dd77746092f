"""
HTTP surface tests.
"""
import threading
from decimal import Decimal

from fastapi.testclient import TestClient

from main import create_app
from services import InvoiceStore, sign


def _invoice_no(app) -> str:
     return f"INV-{app.state.invoices.now():%Y%m}-456789"


class TestSign:
     def test_sign_known_product(self, client, settings):
          response = client.post(
               "/payfast/sign",
               json={"sku": "WA-01", "name_first": "Jane", "email_address": "jane@example.com"},
          )

          assert response.status_code == 200
          body = response.json()
          assert body["ok"] is True
          assert body["processUrl"] == "https://sandbox.payfast.co.za/eng/process"
          fields = body["fields"]
          assert fields["amount"] == "1499.00"
          assert fields["custom_str1"] == "WA-01"
          assert fields["item_description"] == "WA-01 purchase"
          assert fields["merchant_id"] == "10000100"
          assert fields["notify_url"] == settings.notify_url
          assert fields["signature"] == sign(fields, settings.passphrase)
          assert list(fields)[-1] == "signature"

     def test_sign_accepts_camel_case_keys(self, client):
          response = client.post(
               "/payfast/sign",
               json={"productCode": "WA-05", "buyerFirstName": "Sam", "merchantOrderId": "A-1"},
          )

          fields = response.json()["fields"]
          assert fields["amount"] == "800.00"
          assert fields["name_first"] == "Sam"
          assert fields["m_payment_id"] == "A-1"

     def test_sign_unknown_product(self, client):
          response = client.post("/payfast/sign", json={"sku": "WA-99"})

          assert response.status_code == 400
          assert response.json() == {"ok": False, "error": "Unknown SKU"}

     def test_sign_missing_product(self, client):
          response = client.post("/payfast/sign", json={})
          assert response.status_code == 400

     def test_sign_malformed_body(self, client):
          for body in ({"sku": 123}, {"sku": "WA-01", "name_first": None}):
               response = client.post("/payfast/sign", json=body)

               assert response.status_code == 400
               assert response.json() == {"ok": False, "error": "Invalid request"}


class TestNotify:
     def test_complete_payment_end_to_end(self, settings, outbound, make_notification):
          app = create_app(settings)
          with TestClient(app) as client:
               response = client.post("/payfast/itn", data=make_notification())
               assert response.status_code == 200
               assert response.text == "OK"
          # leaving the client drains the background pipeline

          invoice_no = _invoice_no(app)
          store: InvoiceStore = app.state.store
          assert store.load(invoice_no).amount == Decimal("1499.00")

          with TestClient(app) as client:
               pdf = client.get(f"/invoices/{invoice_no}.pdf")
               assert pdf.status_code == 200
               assert pdf.content.startswith(b"%PDF")

               resend = client.get("/invoices/resend", params={"invoiceNo": invoice_no})
               assert resend.json() == {"ok": True}

               repair = client.get("/invoices/repair", params={"invoiceNo": invoice_no})
               assert repair.json() == {"ok": True, "fileUrl": f"/invoices/{invoice_no}.pdf"}

     def test_pending_payment_acknowledged_but_not_invoiced(self, settings, outbound, make_notification):
          app = create_app(settings)
          with TestClient(app) as client:
               response = client.post("/payfast/itn", data=make_notification(payment_status="PENDING"))
               assert response.status_code == 200

          store: InvoiceStore = app.state.store
          assert not store.exists(_invoice_no(app))
          assert not store.pdf_path(_invoice_no(app)).exists()
          assert len(outbound.to("/eng/validate")) == 1

     def test_forged_notification_acknowledged(self, settings, outbound, make_notification):
          app = create_app(settings)
          with TestClient(app) as client:
               response = client.post("/payfast/itn", data=make_notification(passphrase="guess"))
               assert response.status_code == 200
               assert response.text == "OK"

          assert list(app.state.store.directory.iterdir()) == []

     def test_acknowledged_before_pipeline_runs(self, settings, outbound, make_notification, monkeypatch):
          app = create_app(settings)
          notifications = app.state.notifications
          run_pipeline = notifications.process
          release = threading.Event()

          def held_process(fields):
               release.wait(timeout=10)
               return run_pipeline(fields)

          monkeypatch.setattr(notifications, "process", held_process)
          store: InvoiceStore = app.state.store
          with TestClient(app) as client:
               response = client.post("/payfast/itn", data=make_notification())

               assert response.status_code == 200
               assert response.text == "OK"
               assert len(app.state.tracker) == 1
               assert not store.exists(_invoice_no(app))
               assert outbound.to("/eng/validate") == []
               release.set()

          assert store.exists(_invoice_no(app))
          assert store.pdf_path(_invoice_no(app)).exists()
          assert len(outbound.to("/eng/validate")) == 1

     def test_crashing_pipeline_still_acknowledged(self, settings, outbound, make_notification, monkeypatch):
          app = create_app(settings)

          def broken_process(fields):
               raise RuntimeError("renderer exploded")

          monkeypatch.setattr(app.state.notifications, "process", broken_process)
          with TestClient(app) as client:
               response = client.post("/payfast/itn", data=make_notification())

               assert response.status_code == 200
               assert response.text == "OK"

          assert len(app.state.tracker) == 0
          assert list(app.state.store.directory.iterdir()) == []

     def test_empty_body_acknowledged(self, client):
          response = client.post("/payfast/itn")
          assert response.status_code == 200
          assert response.text == "OK"


class TestInvoiceUtilities:
     def test_resend_unknown(self, client):
          response = client.get("/invoices/resend", params={"invoiceNo": "INV-209901-000001"})

          assert response.status_code == 404
          assert response.json() == {"ok": False, "error": "Not found"}

     def test_repair_unknown(self, client):
          response = client.get("/invoices/repair", params={"invoiceNo": "INV-209901-000001"})
          assert response.status_code == 404

     def test_missing_invoice_number(self, client):
          assert client.get("/invoices/repair").status_code == 404
          assert client.get("/invoices/resend").status_code == 404

     def test_path_traversal_is_not_found(self, client):
          response = client.get("/invoices/repair", params={"invoiceNo": "../config"})
          assert response.status_code == 404

     def test_resend_email_failure(self, client, outbound, invoices, make_notification):
          # invoices fixture shares the settings (and invoice dir) with the app
          stored, _ = invoices.issue(make_notification(), "WA-01", Decimal("1499.00"))
          outbound.email_status = 503

          response = client.get("/invoices/resend", params={"invoiceNo": stored.invoice_no})

          assert response.status_code == 500
          assert response.json() == {"ok": False, "error": "Resend failed"}

     def test_records_are_not_served(self, client, invoices, make_notification):
          stored, _ = invoices.issue(make_notification(), "WA-01", Decimal("1499.00"))

          assert client.get(f"/invoices/{stored.invoice_no}.json").status_code == 404
          assert client.get(stored.file_url).status_code == 200


def test_health(client):
     response = client.get("/health")
     assert response.json() == {"ok": True}


def test_unknown_route(client):
     response = client.get("/nope")
     assert response.status_code == 404
     assert response.json() == {"ok": False, "error": "Route not found"}


def test_cors_allows_configured_origin(client):
     response = client.get("/health", headers={"Origin": "https://shop.example"})
     assert response.headers["access-control-allow-origin"] == "*"
