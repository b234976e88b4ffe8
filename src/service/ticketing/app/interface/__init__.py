"""Application layer interfaces (Ports)"""

from src.service.ticketing.app.interface.i_booking_command_repo import IBookingCommandRepo
from src.service.ticketing.app.interface.i_buyer_directory import IBuyerDirectory
from src.service.ticketing.app.interface.i_event_directory import IEventDirectory
from src.service.ticketing.app.interface.i_inventory_ledger import IInventoryLedger
from src.service.ticketing.app.interface.i_notification_publisher import INotificationPublisher
from src.service.ticketing.app.interface.i_payment_gateway import IPaymentGateway
from src.service.ticketing.app.interface.i_ticket_category_repo import ITicketCategoryRepo
from src.service.ticketing.app.interface.i_ticket_repo import ITicketRepo

__all__ = [
    'IBookingCommandRepo',
    'IBuyerDirectory',
    'IEventDirectory',
    'IInventoryLedger',
    'INotificationPublisher',
    'IPaymentGateway',
    'ITicketCategoryRepo',
    'ITicketRepo',
]
