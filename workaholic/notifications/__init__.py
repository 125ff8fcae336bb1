# Due-task push notification subsystem

from .channels import ExpoRelayChannel, FcmChannel, PushResult, is_expo_push_token
from .dispatcher import Delivery, NotificationDispatcher, NotificationOutcome
from .errors import ChannelNotInitialized, InvalidPushAddress, PushError, PushSendFailure
from .scanner import DueWindow, ScanPolicy, scan_due_tasks
from .scheduler import NotificationScheduler, PassReport, run_due_pass

__all__ = [
    "ChannelNotInitialized",
    "Delivery",
    "DueWindow",
    "ExpoRelayChannel",
    "FcmChannel",
    "InvalidPushAddress",
    "NotificationDispatcher",
    "NotificationOutcome",
    "NotificationScheduler",
    "PassReport",
    "PushError",
    "PushResult",
    "PushSendFailure",
    "ScanPolicy",
    "is_expo_push_token",
    "run_due_pass",
    "scan_due_tasks",
]
