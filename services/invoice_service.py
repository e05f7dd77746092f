# services/invoice_service.py
"""
Invoice Service - issuing, repairing and resending invoices.

Issuing turns a validated notification into an InvoiceRecord, renders it,
stores both artifacts and emails the customer. Repair and Resend work only
from what the store already holds and never look at payment data again.
"""
from datetime import datetime
from decimal import Decimal
from typing import Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

import structlog

from config import Settings
from exceptions import InvoiceStorageError
from schemas.delivery import DeliveryResult
from schemas.invoice import InvoiceRecord, StoredInvoice, RECORD_DATE_FORMAT
from services.pdf_service import InvoiceRenderer
from services.storage_service import InvoiceStore
from utils.email import send_invoice_email

logger = structlog.get_logger(__name__)

PLACEHOLDER_PAYMENT_ID = "000000"


def invoice_number_for(pf_payment_id: Optional[str], now: datetime) -> str:
     """
     Derive the invoice number: INV-<YYYY><MM>-<last 6 chars of pf_payment_id>.

     YYYY/MM are the processing date. A missing payment id falls back to
     "000000", which makes every such invoice in a month share one number.
     """
     last6 = str(pf_payment_id or PLACEHOLDER_PAYMENT_ID)[-6:]
     return f"INV-{now.year:04d}{now.month:02d}-{last6}"


def build_invoice_record(
     notification: Mapping[str, str],
     sku: str,
     amount: Decimal,
     now: datetime,
) -> InvoiceRecord:
     """
     Build the record for a validated notification.

     ``amount`` must be the price table value; the notified amount is never copied.
     """
     pf_payment_id = notification.get("pf_payment_id") or None
     customer_name = f"{notification.get('name_first') or ''} {notification.get('name_last') or ''}".strip()
     return InvoiceRecord(
          invoice_no=invoice_number_for(pf_payment_id, now),
          date=now.strftime(RECORD_DATE_FORMAT),
          pf_payment_id=pf_payment_id,
          m_payment_id=notification.get("m_payment_id") or None,
          sku=sku,
          item_name=notification.get("item_name") or sku,
          item_description=notification.get("item_description") or f"{sku} purchase",
          amount=amount,
          customer_name=customer_name,
          customer_email=notification.get("email_address") or "",
          customer_phone=notification.get("cell_number") or "",
     )


class InvoiceService:
     """Service class for invoice issuing and the operator repair/resend paths."""

     def __init__(
          self,
          settings: Settings,
          store: InvoiceStore,
          renderer: InvoiceRenderer,
          mailer=send_invoice_email,
     ):
          self.settings = settings
          self.store = store
          self.renderer = renderer
          self.mailer = mailer
          self.tz = ZoneInfo(settings.invoice_timezone)

     def now(self) -> datetime:
          return datetime.now(self.tz)

     def issue(
          self,
          notification: Mapping[str, str],
          sku: str,
          amount: Decimal,
          now: Optional[datetime] = None,
     ) -> Tuple[Optional[StoredInvoice], Optional[DeliveryResult]]:
          """
          Create, store and email the invoice for a validated notification.

          Returns:
               (stored, email_result); both None when the notification was
               already invoiced under the same payment id

          Raises:
               DocumentGenerationError: If rendering fails (nothing is written)
               InvoiceStorageError: If the artifacts cannot be saved
          """
          record = build_invoice_record(notification, sku, amount, now or self.now())

          if not record.pf_payment_id:
               logger.warning("invoice_number_placeholder", invoice_no=record.invoice_no)
          elif self._already_issued(record):
               logger.info(
                    "duplicate_notification_skipped",
                    invoice_no=record.invoice_no,
                    pf_payment_id=record.pf_payment_id,
               )
               return None, None

          document = self.renderer.render(record)
          stored = self.store.save(record, document)
          logger.info("invoice_generated", invoice_no=record.invoice_no, file_url=stored.file_url)

          result = self._deliver(record, document)
          return stored, result

     def repair(self, invoice_no: str) -> StoredInvoice:
          """
          Re-render the document from the stored record and save both again.

          Raises:
               InvoiceNotFoundError: If the invoice number is unknown
          """
          record = self.store.load(invoice_no)
          document = self.renderer.render(record)
          stored = self.store.save(record, document)
          logger.info("invoice_repaired", invoice_no=invoice_no, file_url=stored.file_url)
          return stored

     def resend(self, invoice_no: str) -> DeliveryResult:
          """
          Email the stored document again.

          Raises:
               InvoiceNotFoundError: If the record or its document is missing
          """
          record = self.store.load(invoice_no)
          document = self.store.load_document(invoice_no)
          return self._deliver(record, document)

     def _already_issued(self, record: InvoiceRecord) -> bool:
          if not self.store.exists(record.invoice_no):
               return False
          try:
               existing = self.store.load(record.invoice_no)
          except InvoiceStorageError:
               logger.warning("existing_record_unreadable", invoice_no=record.invoice_no, exc_info=True)
               return False
          return existing.pf_payment_id == record.pf_payment_id

     def _deliver(self, record: InvoiceRecord, document: bytes) -> DeliveryResult:
          result = self.mailer(record, document, self.settings)
          if not result.ok:
               logger.error("invoice_email_failed", invoice_no=record.invoice_no, error=result.error)
          return result
