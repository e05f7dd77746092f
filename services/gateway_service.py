# services/gateway_service.py
"""
PayFast-facing operations: building signed payment forms and relaying
notifications back to the gateway's validate endpoint.
"""
from typing import Dict, Mapping

import requests
import structlog

from config import Settings
from schemas.delivery import DeliveryResult
from schemas.payment import SignRequest
from services import signature_service
from services.price_service import PriceAuthority

logger = structlog.get_logger(__name__)


class GatewayService:
     """Signs outgoing payment requests and posts notifications back for validation."""

     def __init__(self, settings: Settings, prices: PriceAuthority):
          self.settings = settings
          self.prices = prices

     @property
     def process_url(self) -> str:
          return self.settings.process_url

     def build_payment_fields(self, request: SignRequest) -> Dict[str, str]:
          """
          Produce the signed field set for the gateway's payment form.

          The amount always comes from the price table.

          Raises:
               UnknownProductError: If the sku is not listed
          """
          sku = request.sku
          amount = self.prices.require_price(sku)
          s = self.settings
          fields = {
               "merchant_id": s.merchant_id,
               "merchant_key": s.merchant_key,
               "return_url": s.return_url,
               "cancel_url": s.cancel_url,
               "notify_url": s.notify_url,
               "name_first": request.name_first,
               "name_last": request.name_last,
               "email_address": request.email_address,
               "m_payment_id": request.m_payment_id,
               "amount": f"{amount:.2f}",
               "item_name": sku,
               "item_description": f"{sku} purchase",
               "custom_str1": sku,
          }
          fields["signature"] = signature_service.sign(fields, s.passphrase)
          logger.info("payment_fields_signed", sku=sku, m_payment_id=request.m_payment_id or None)
          return fields

     def postback(self, fields: Mapping[str, str]) -> DeliveryResult:
          """Form-POST the notification to the gateway validate endpoint. Never raises."""
          data = {k: v for k, v in fields.items() if v is not None}
          try:
               response = requests.post(
                    self.settings.validate_url,
                    data=data,
                    headers={"Content-Type": "application/x-www-form-urlencoded"},
                    timeout=self.settings.http_timeout,
               )
          except requests.RequestException as e:
               return DeliveryResult.failure("postback", str(e))

          if not response.ok:
               return DeliveryResult.failure("postback", f"HTTP {response.status_code}")
          return DeliveryResult.success("postback", response.text.strip()[:64] or None)
