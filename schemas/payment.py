# schemas/payment.py
"""
Pydantic schemas for the gateway sign request and notification outcomes.
"""
from decimal import Decimal
from typing import Dict, Optional
from pydantic import AliasChoices, BaseModel, Field, ConfigDict


class SignRequest(BaseModel):
     """Request body for POST /payfast/sign."""

     sku: str = Field(
          "",
          validation_alias=AliasChoices("sku", "productCode"),
          description="Product code to charge for",
     )
     name_first: str = Field("", validation_alias=AliasChoices("name_first", "buyerFirstName"))
     name_last: str = Field("", validation_alias=AliasChoices("name_last", "buyerLastName"))
     email_address: str = Field("", validation_alias=AliasChoices("email_address", "buyerEmail"))
     m_payment_id: str = Field("", validation_alias=AliasChoices("m_payment_id", "merchantOrderId"))

     model_config = ConfigDict(
          json_schema_extra={
               "example": {
                    "sku": "WA-01",
                    "name_first": "Jane",
                    "name_last": "Doe",
                    "email_address": "jane@example.com",
                    "m_payment_id": "ORDER-42",
               }
          }
     )


class SignResponse(BaseModel):
     """Response for POST /payfast/sign."""

     ok: bool = True
     processUrl: str = Field(..., description="Gateway form action for the selected mode")
     fields: Dict[str, str] = Field(..., description="Signed field set, signature last")


class ValidationResult(BaseModel):
     """Outcome of the three notification checks."""

     signature_valid: bool
     amount_valid: bool
     status_complete: bool
     sku: Optional[str] = None
     expected_amount: Optional[Decimal] = None
     claimed_amount: Decimal = Decimal("0")
     payment_status: Optional[str] = None

     @property
     def passed(self) -> bool:
          return self.signature_valid and self.amount_valid and self.status_complete
