from prometheus_client import Counter, Histogram


class TicketingMetrics:
    """
    Booking and check-in metrics collector

    Tracks inventory reservation outcomes, the payment lifecycle, check-in results
    and failures of the external collaborators (gateway, notifications).
    """

    def __init__(self):
        # ========== Booking Metrics ==========
        self.bookings_created = Counter(
            'bookings_created_total',
            'Total bookings created',
            ['status', 'group_mode'],  # status: pending/awaiting_payment/confirmed
        )

        self.inventory_reservations = Counter(
            'inventory_reservations_total',
            'Inventory reservation attempts',
            ['result'],  # reserved/insufficient_capacity/category_closed/not_found
        )

        self.inventory_releases = Counter(
            'inventory_releases_total',
            'Inventory units released',
            ['reason'],  # compensation/cancellation
        )

        self.booking_duration = Histogram(
            'booking_create_duration_seconds',
            'Create booking processing time',
            buckets=[0.01, 0.05, 0.1, 0.2, 0.5, 1.0, 2.0, 5.0],
        )

        # ========== Payment Metrics ==========
        self.payment_results = Counter(
            'payment_results_applied_total',
            'Gateway results applied by the reconciler',
            ['source', 'status', 'outcome'],  # outcome: applied/already_processed/ignored
        )

        self.refunds = Counter(
            'refunds_total',
            'Refund attempts after cancellation',
            ['result'],  # refunded/failed/not_eligible
        )

        # ========== Check-in Metrics ==========
        self.check_ins = Counter(
            'ticket_check_ins_total',
            'Check-in attempts',
            ['result'],  # checked_in/already_checked_in/invalid_credential/out_of_window/not_active
        )

        # ========== Collaborator Metrics ==========
        self.collaborator_failures = Counter(
            'collaborator_failures_total',
            'Failures talking to external collaborators',
            ['collaborator', 'operation'],
        )

    # ========== Helper Methods ==========

    def record_booking_created(self, *, status: str, group_mode: bool, duration: float):
        self.bookings_created.labels(status=status, group_mode=str(group_mode).lower()).inc()
        self.booking_duration.observe(duration)

    def record_reservation(self, *, result: str):
        self.inventory_reservations.labels(result=result).inc()

    def record_release(self, *, reason: str, quantity: int):
        self.inventory_releases.labels(reason=reason).inc(quantity)

    def record_payment_result(self, *, source: str, status: str, outcome: str):
        self.payment_results.labels(source=source, status=status, outcome=outcome).inc()

    def record_refund(self, *, result: str):
        self.refunds.labels(result=result).inc()

    def record_check_in(self, *, result: str):
        self.check_ins.labels(result=result).inc()

    def record_collaborator_failure(self, *, collaborator: str, operation: str):
        self.collaborator_failures.labels(collaborator=collaborator, operation=operation).inc()


# Global metrics instance
metrics = TicketingMetrics()
