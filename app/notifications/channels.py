from enum import Enum

from app.models.notifications import RecipientRole


class Channel(str, Enum):
    POPUP_USER = "popup_user"    # message returned with the API response
    EMAIL_USER = "email_user"    # Brevo email to the customer
    EMAIL_ADMIN = "email_admin"  # Brevo email to ADMIN_EMAILS
    INAPP_ADMIN = "inapp_admin"  # admin notification inbox row

    @property
    def audience(self) -> RecipientRole:
        return RecipientRole.admin if self.name.endswith("_ADMIN") else RecipientRole.customer


def enabled_channels(rules: dict, notify_user: bool = True, notify_admin: bool = True) -> set:
    """Channels switched on for an event, minus the audiences the caller muted."""
    allowed = {RecipientRole.customer: notify_user, RecipientRole.admin: notify_admin}
    return {channel for channel, on in rules.items() if on and allowed[channel.audience]}
