"""Service ticket schemas; a ticket carries the same fields as a receipt"""
from shopdesk.schemas.receipt import ReceiptResponse, ReceiptUpdate


class ServiceTicketUpdate(ReceiptUpdate):
    pass


class ServiceTicketResponse(ReceiptResponse):
    pass
