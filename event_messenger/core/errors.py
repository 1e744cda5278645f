"""
Error taxonomy for the notification and retention pipeline
"""


class MessengerError(Exception):
    """Base class for every error raised by the event messenger core"""


class PersistenceError(MessengerError):
    """The event store failed to read or write"""


class RenderError(MessengerError):
    """The notification template could not be rendered"""


class DeliveryError(MessengerError):
    """The mail transport refused or failed to deliver a message"""


class StateUpdateError(MessengerError):
    """The notification was delivered but the event could not be marked as sent.

    The event is still due, so the next run will deliver it a second time.
    """


class PreconditionError(MessengerError):
    """A lifecycle transition was requested from a state that does not allow it"""


class ArtifactError(MessengerError):
    """A stored submission image could not be read, decoded or written"""
