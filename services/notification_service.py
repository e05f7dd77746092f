# services/notification_service.py
"""
Payment notification (ITN) pipeline.

Runs after the gateway has already received its 200 OK:
1. Verify the signature over the full notification
2. Look up the expected price for custom_str1
3. Compare the notified gross amount (tolerance below 0.01)
4. Require payment_status == "COMPLETE"
5. On all three passing, issue the invoice; otherwise log and stop
6. Independently of the outcome, post the notification back to the gateway

Nothing here raises to the caller: the request is long finished.
"""
import re
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping, Optional

import structlog
from starlette.concurrency import run_in_threadpool

from config import Settings
from schemas.payment import ValidationResult
from services import signature_service
from services.gateway_service import GatewayService
from services.invoice_service import InvoiceService
from services.price_service import PriceAuthority

logger = structlog.get_logger(__name__)

STATUS_COMPLETE = "COMPLETE"
AMOUNT_TOLERANCE = Decimal("0.01")

# Leading number of a notified amount; trailing text such as a currency code is ignored.
_AMOUNT_PREFIX = re.compile(r"\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")


def parse_amount(value: Any) -> Decimal:
     """Parse a notified amount; anything unparseable counts as zero."""
     match = _AMOUNT_PREFIX.match(str(value)) if value is not None else None
     if match is None:
          return Decimal("0")
     try:
          amount = Decimal(match.group(1))
     except (InvalidOperation, ValueError):
          return Decimal("0")
     if not amount.is_finite():
          return Decimal("0")
     return amount


def amount_matches(claimed: Decimal, expected: Optional[Decimal]) -> bool:
     if expected is None:
          return False
     return abs(claimed - expected) < AMOUNT_TOLERANCE


class NotificationService:
     """Validates gateway notifications and drives invoice issuing."""

     def __init__(
          self,
          settings: Settings,
          prices: PriceAuthority,
          gateway: GatewayService,
          invoices: InvoiceService,
     ):
          self.settings = settings
          self.prices = prices
          self.gateway = gateway
          self.invoices = invoices

     def validate(self, fields: Mapping[str, str]) -> ValidationResult:
          sku = fields.get("custom_str1") or None
          expected = self.prices.price_of(sku)
          claimed = parse_amount(fields.get("amount_gross") or fields.get("amount") or "0")
          status = fields.get("payment_status")
          return ValidationResult(
               signature_valid=signature_service.verify(
                    fields, fields.get(signature_service.SIGNATURE_FIELD), self.settings.passphrase
               ),
               amount_valid=amount_matches(claimed, expected),
               status_complete=status == STATUS_COMPLETE,
               sku=sku,
               expected_amount=expected,
               claimed_amount=claimed,
               payment_status=status,
          )

     def process(self, fields: Mapping[str, str]) -> ValidationResult:
          """
          Run one notification through validation, issuing and postback.

          Invoice failures are logged here; the postback still runs.
          """
          fields = dict(fields)
          result = self.validate(fields)
          log = logger.bind(pf_payment_id=fields.get("pf_payment_id"), m_payment_id=fields.get("m_payment_id"))

          if result.passed:
               try:
                    self.invoices.issue(fields, result.sku, result.expected_amount)
               except Exception:
                    log.exception("invoice_issue_failed", sku=result.sku)
          else:
               log.warning(
                    "itn_validation_failed",
                    signature_valid=result.signature_valid,
                    amount_valid=result.amount_valid,
                    status=result.payment_status,
               )

          postback = self.gateway.postback(fields)
          if not postback.ok:
               log.warning("validate_postback_failed", error=postback.error)

          return result

     async def handle(self, fields: Mapping[str, str]) -> Optional[ValidationResult]:
          """Background entry point: run ``process`` off the event loop, swallowing crashes."""
          try:
               return await run_in_threadpool(self.process, fields)
          except Exception:
               logger.exception("itn_error")
               return None
