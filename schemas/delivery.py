# schemas/delivery.py
"""
Result type for best-effort side effects (invoice email, gateway postback).

These never raise into the notification pipeline; the caller inspects
``ok`` and logs the outcome.
"""
from typing import Optional
from pydantic import BaseModel


class DeliveryResult(BaseModel):
     ok: bool
     channel: str
     detail: Optional[str] = None
     error: Optional[str] = None

     @classmethod
     def success(cls, channel: str, detail: str = None) -> "DeliveryResult":
          return cls(ok=True, channel=channel, detail=detail)

     @classmethod
     def failure(cls, channel: str, error: str) -> "DeliveryResult":
          return cls(ok=False, channel=channel, error=error)
