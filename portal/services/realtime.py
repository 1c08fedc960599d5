import logging

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer

logger = logging.getLogger(__name__)

NOTIFICATIONS_GROUP = "notifications.{user_id}"
NOTIFICATIONS_EVENT = "notifications.update"


def notifications_group(user_id) -> str:
    return NOTIFICATIONS_GROUP.format(user_id=user_id)


def broadcast_notifications_update(user_id) -> bool:
    """Tell every socket of ``user_id`` to re-fetch its notification state.

    Fire-and-forget: the event carries no data and a delivery failure is
    only logged.
    """
    channel_layer = get_channel_layer()
    if channel_layer is None:
        return False
    try:
        async_to_sync(channel_layer.group_send)(notifications_group(user_id), {"type": NOTIFICATIONS_EVENT})
    except Exception:
        logger.exception("notifications broadcast failed for user %s", user_id)
        return False
    return True
