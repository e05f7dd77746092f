# utils/email.py
import base64

import requests
import structlog

from config import Settings
from schemas.delivery import DeliveryResult
from schemas.invoice import InvoiceRecord
from services.pdf_service import format_money

logger = structlog.get_logger(__name__)


def invoice_email_body(record: InvoiceRecord, settings: Settings) -> str:
     return (
          f"Hi {record.customer_name},\n"
          "\n"
          "Please find your invoice attached.\n"
          "\n"
          f"Invoice: {record.invoice_no}\n"
          f"SKU: {record.sku}\n"
          f"Amount: {format_money(record.amount, settings.currency_prefix)}\n"
          f"PayFast ID: {record.pf_payment_id or ''}\n"
          "\n"
          "Regards,\n"
          f"{settings.company_name}"
     )


def build_invoice_message(record: InvoiceRecord, document: bytes, settings: Settings) -> dict:
     """Brevo transactional payload: customer in To, admin in CC."""
     message = {
          "sender": {"name": settings.company_name, "email": settings.from_email},
          "subject": f"{settings.company_name} Invoice {record.invoice_no}",
          "textContent": invoice_email_body(record, settings),
          "attachment": [
               {
                    "name": f"{record.invoice_no}.pdf",
                    "content": base64.b64encode(document).decode("ascii"),
               }
          ],
     }
     if record.customer_email:
          message["to"] = [{"email": record.customer_email, "name": record.customer_name or record.customer_email}]
          if settings.admin_email and settings.admin_email != record.customer_email:
               message["cc"] = [{"email": settings.admin_email}]
     else:
          message["to"] = [{"email": settings.admin_email}]
     return message


def send_invoice_email(record: InvoiceRecord, document: bytes, settings: Settings) -> DeliveryResult:
     """Send the invoice PDF. Never raises; inspect the returned result."""
     if not settings.brevo_api_key:
          return DeliveryResult.failure("email", "BREVO_API_KEY is not set")

     try:
          response = requests.post(
               settings.brevo_api_url,
               headers={
                    "api-key": settings.brevo_api_key,
                    "Content-Type": "application/json",
               },
               json=build_invoice_message(record, document, settings),
               timeout=settings.http_timeout,
          )
     except requests.RequestException as e:
          return DeliveryResult.failure("email", str(e))

     if response.status_code not in (200, 201, 202):
          return DeliveryResult.failure("email", f"Brevo error {response.status_code}: {response.text}")

     message_id = None
     try:
          message_id = response.json().get("messageId")
     except ValueError:
          pass
     logger.info("invoice_email_sent", invoice_no=record.invoice_no, message_id=message_id)
     return DeliveryResult.success("email", message_id)
