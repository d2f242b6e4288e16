"""
Core exception taxonomy for the invite bot.

Used to distinguish business outcomes from system failures.
Service packages derive their own domain errors from these bases.
"""


class InviteBotError(Exception):
    """Base class for all invite bot errors"""
    pass


class ConfigurationError(InviteBotError):
    """Raised when required startup configuration is missing or malformed.

    Fatal: the process halts before serving any update.
    """
    pass


class ValidationError(InviteBotError):
    """Raised when command arguments are malformed (reported with a usage hint)"""
    pass


class NotFoundError(InviteBotError):
    """Raised when an admin looks up an unknown profile or tier"""
    pass


class DeliveryFailedError(InviteBotError):
    """Raised when a message or document cannot be delivered to one recipient.

    Never aborts a broader batch or dispatch pass.
    """

    def __init__(self, telegram_id: int, reason: str):
        super().__init__(f"delivery to {telegram_id} failed: {reason}")
        self.telegram_id = telegram_id
        self.reason = reason
