# dependencies.py
"""
FastAPI dependencies resolving the components built in main.create_app.
"""
from fastapi import Request

from services import GatewayService, InvoiceService, NotificationService, PipelineTracker


def get_gateway(request: Request) -> GatewayService:
     return request.app.state.gateway


def get_invoice_service(request: Request) -> InvoiceService:
     return request.app.state.invoices


def get_notification_service(request: Request) -> NotificationService:
     return request.app.state.notifications


def get_tracker(request: Request) -> PipelineTracker:
     return request.app.state.tracker
