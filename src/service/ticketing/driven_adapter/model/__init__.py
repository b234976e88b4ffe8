"""
Database Models

Import all models here to ensure they are registered with SQLAlchemy
"""

from src.service.ticketing.driven_adapter.model.booking_model import BookingModel
from src.service.ticketing.driven_adapter.model.event_model import EventModel
from src.service.ticketing.driven_adapter.model.ticket_category_model import TicketCategoryModel
from src.service.ticketing.driven_adapter.model.ticket_model import TicketModel
from src.service.ticketing.driven_adapter.model.user_model import UserModel

__all__ = [
    'BookingModel',
    'EventModel',
    'TicketCategoryModel',
    'TicketModel',
    'UserModel',
]
