"""
Wire Modules Configuration

Defines the modules that need dependency injection wiring.
Shared between production and test environments.
"""

from types import ModuleType

from src.service.ticketing.app.command import (
    apply_payment_result_use_case,
    cancel_booking_use_case,
    check_in_ticket_use_case,
    create_booking_use_case,
    create_ticket_category_use_case,
    expire_stale_bookings_use_case,
    handle_payment_callback_use_case,
    initiate_payment_use_case,
    sync_payment_status_use_case,
    transfer_ticket_use_case,
    update_ticket_category_use_case,
)
from src.service.ticketing.app.query import (
    get_booking_use_case,
    get_ticket_use_case,
    list_bookings_use_case,
    list_event_tickets_use_case,
    list_my_tickets_use_case,
    list_ticket_categories_use_case,
    verify_ticket_by_code_use_case,
)


WIRE_MODULES: list[ModuleType] = [
    create_ticket_category_use_case,
    update_ticket_category_use_case,
    list_ticket_categories_use_case,
    create_booking_use_case,
    initiate_payment_use_case,
    apply_payment_result_use_case,
    handle_payment_callback_use_case,
    sync_payment_status_use_case,
    cancel_booking_use_case,
    expire_stale_bookings_use_case,
    get_booking_use_case,
    list_bookings_use_case,
    check_in_ticket_use_case,
    transfer_ticket_use_case,
    verify_ticket_by_code_use_case,
    get_ticket_use_case,
    list_my_tickets_use_case,
    list_event_tickets_use_case,
]
