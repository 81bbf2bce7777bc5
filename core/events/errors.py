"""
Promotion Registry - Event Bus Errors
=======================================
Raised while wiring subscribers. Delivery itself never raises;
failures are reported in the DispatchReport.
"""


class EventBusError(Exception):
    """Base error for event bus wiring."""
    pass


class InvalidEventTypeFormat(EventBusError):
    def __init__(self, event_type):
        self.event_type = event_type
        super().__init__(
            f"Cannot subscribe to {event_type!r}: expected '*' or a "
            f"dotted type such as 'promotion.customer.applied.v1'."
        )


class DuplicateSubscriberError(EventBusError):
    def __init__(self, event_type: str, handler_name: str):
        self.event_type = event_type
        self.handler_name = handler_name
        super().__init__(
            f"'{handler_name}' is already subscribed to '{event_type}'."
        )
