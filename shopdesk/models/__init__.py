"""Database models"""
from shopdesk.models.admin_request import AdminRequest
from shopdesk.models.admin_user import AdminUser
from shopdesk.models.center import Center
from shopdesk.models.inquiry import Inquiry
from shopdesk.models.receipt import Receipt
from shopdesk.models.service_ticket import ServiceTicket

__all__ = ["AdminRequest", "AdminUser", "Center", "Inquiry", "Receipt", "ServiceTicket"]
