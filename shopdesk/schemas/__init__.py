"""Pydantic schemas for request/response validation"""
from shopdesk.schemas.account_request import (
    AccountRequestCreate,
    AccountRequestDecision,
    AccountRequestDecisionResponse,
    AccountRequestResponse,
)
from shopdesk.schemas.admin_user import (
    AdminUserCreate,
    AdminUserResponse,
    AdminUserUpdate,
    CenterResponse,
    CodeLoginRequest,
    LoginRequest,
    SessionUser,
)
from shopdesk.schemas.common import Envelope, ErrorResponse, ListEnvelope, MessageResponse
from shopdesk.schemas.inquiry import InquiryCreate, InquiryResponse, InquirySummary, InquiryUpdate
from shopdesk.schemas.receipt import ReceiptCreate, ReceiptResponse, ReceiptUpdate
from shopdesk.schemas.service_ticket import ServiceTicketResponse, ServiceTicketUpdate

__all__ = [
    "AccountRequestCreate",
    "AccountRequestDecision",
    "AccountRequestDecisionResponse",
    "AccountRequestResponse",
    "AdminUserCreate",
    "AdminUserResponse",
    "AdminUserUpdate",
    "CenterResponse",
    "CodeLoginRequest",
    "LoginRequest",
    "SessionUser",
    "Envelope",
    "ErrorResponse",
    "ListEnvelope",
    "MessageResponse",
    "InquiryCreate",
    "InquiryResponse",
    "InquirySummary",
    "InquiryUpdate",
    "ReceiptCreate",
    "ReceiptResponse",
    "ReceiptUpdate",
    "ServiceTicketResponse",
    "ServiceTicketUpdate",
]
