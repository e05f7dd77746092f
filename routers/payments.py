# routers/payments.py
"""
PayFast API.

POST /payfast/sign: build the signed payment form for a product.
POST /payfast/itn:  gateway notification webhook. Answers "OK" at once and
                    runs validation and invoicing in a tracked background task.
"""
from fastapi import APIRouter, Depends, Request
from fastapi.responses import PlainTextResponse
from starlette.background import BackgroundTask

import structlog

from dependencies import get_gateway, get_notification_service, get_tracker
from schemas.payment import SignRequest, SignResponse
from services import GatewayService, NotificationService, PipelineTracker

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/payfast", tags=["payfast"])


@router.post("/sign", response_model=SignResponse, summary="Sign a payment request")
def sign_payment(
     body: SignRequest,
     gateway: GatewayService = Depends(get_gateway),
):
     """
     Return the gateway process URL and the signed form fields.

     - **sku**: product code; the amount is taken from the price table
     - **name_first / name_last / email_address**: optional buyer details
     - **m_payment_id**: optional merchant order reference

     Unknown products are rejected with 400.
     """
     fields = gateway.build_payment_fields(body)
     return SignResponse(processUrl=gateway.process_url, fields=fields)


async def _read_notification(request: Request) -> dict:
     try:
          form = await request.form()
     except Exception:
          logger.warning("itn_unreadable_body", exc_info=True)
          return {}
     return {k: v for k, v in form.items() if isinstance(v, str)}


@router.post("/itn", response_class=PlainTextResponse, summary="Payment notification webhook")
async def payment_notification(
     request: Request,
     notifications: NotificationService = Depends(get_notification_service),
     tracker: PipelineTracker = Depends(get_tracker),
):
     """
     Acknowledge the notification, then process it after the response is sent.

     The gateway always sees 200 OK; validation failures are only logged.
     """
     fields = await _read_notification(request)

     async def detach() -> None:
          if fields:
               tracker.spawn(notifications.handle(fields), name=f"itn:{fields.get('pf_payment_id', '')}")

     return PlainTextResponse("OK", background=BackgroundTask(detach))
