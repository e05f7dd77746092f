# config.py
"""
Application settings loaded from the environment.

This module provides:
- A frozen Settings object (merchant credentials, URLs, mail, company details)
- The canonical price table
- Gateway endpoint selection for sandbox/live mode

Usage:
     from config import get_settings

     settings = get_settings()
     settings.process_url
"""
import json
from decimal import ROUND_HALF_UP, Decimal
from functools import lru_cache
from typing import Dict

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load environment variables
load_dotenv()

DEFAULT_PRICE_TABLE: Dict[str, Decimal] = {
     "WA-01": Decimal("1499.00"),
     "WA-02": Decimal("2499.00"),
     "WA-03": Decimal("6499.00"),
     "WA-04": Decimal("899.00"),
     "WA-05": Decimal("800.00"),
     "WA-06": Decimal("3999.00"),
     "WA-07": Decimal("1800.00"),
     "WA-08": Decimal("999.00"),
     "WA-09": Decimal("1009.00"),
     "WA-10": Decimal("1299.00"),
     "WA-11": Decimal("5499.00"),
}

GATEWAY_HOSTS = {
     "sandbox": "https://sandbox.payfast.co.za",
     "live": "https://www.payfast.co.za",
}


class Settings(BaseSettings):
     """Process configuration. Immutable once constructed."""

     # Server
     port: int = 8787
     env: str = Field(default="live", description="Gateway mode: sandbox or live")

     # Gateway credentials
     merchant_id: str = ""
     merchant_key: str = ""
     passphrase: str = ""
     return_url: str = "https://wykiesautomation.co.za/thanks"
     cancel_url: str = "https://wykiesautomation.co.za/cancelled"
     notify_url: str = "https://wykiesautomation.co.za/payfast/itn"

     allow_origin: str = "*"

     # Mail (Brevo transactional API)
     brevo_api_key: str = ""
     brevo_api_url: str = "https://api.brevo.com/v3/smtp/email"
     from_email: str = "wykiesautomation@gmail.com"
     admin_email: str = "wykiesautomation@gmail.com"

     # Document template
     company_name: str = "Wykies Automation"
     company_addr: str = "South Africa"
     company_tel: str = "+27 71 681 6131"
     company_email: str = "wykiesautomation@gmail.com"
     company_vat_note: str = "All prices VAT-inclusive."
     currency_prefix: str = "R"

     # Storage
     invoice_dir: str = "invoices"
     invoice_timezone: str = "Africa/Johannesburg"

     price_table: Dict[str, Decimal] = Field(default_factory=lambda: dict(DEFAULT_PRICE_TABLE))

     http_timeout: float = 10.0
     pipeline_drain_timeout: float = 30.0

     log_level: str = "INFO"
     log_format: str = "json"

     model_config = SettingsConfigDict(
          env_file=".env",
          env_file_encoding="utf-8",
          case_sensitive=False,
          extra="ignore",
          frozen=True,
     )

     @field_validator("env")
     @classmethod
     def validate_env(cls, v: str) -> str:
          v = v.strip().lower()
          if v not in GATEWAY_HOSTS:
               raise ValueError("ENV must be 'sandbox' or 'live'")
          return v

     @field_validator("price_table", mode="before")
     @classmethod
     def parse_price_table(cls, v):
          if isinstance(v, str):
               v = json.loads(v)
          return v

     @field_validator("price_table")
     @classmethod
     def quantize_prices(cls, v: Dict[str, Decimal]) -> Dict[str, Decimal]:
          return {sku: Decimal(price).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP) for sku, price in v.items()}

     @property
     def gateway_host(self) -> str:
          return GATEWAY_HOSTS[self.env]

     @property
     def process_url(self) -> str:
          return f"{self.gateway_host}/eng/process"

     @property
     def validate_url(self) -> str:
          return f"{self.gateway_host}/eng/validate"

     @property
     def allowed_origins(self) -> list[str]:
          return [o.strip() for o in self.allow_origin.split(",") if o.strip()]


@lru_cache
def get_settings() -> Settings:
     """Return the process-wide settings, constructed on first use."""
     return Settings()
