"""tubelink - instance and session settings for Piped clients.

Main entry points:
- InstanceSettings: Opens the settings file and wires the components below
- InstanceRegistry: Custom instances merged with the public instance directory
- SessionStore: Session token and selected endpoints
- EndpointResolver: Default/auth endpoint selection rules
- SubscriptionTransfer: Subscription import and export
"""

from .exceptions import (
    ApiError,
    AuthError,
    ConfigError,
    InvalidInstanceError,
    SubscriptionFormatError,
    TransferError,
    TubelinkError,
)
from .models import CustomInstance, InstanceChoice, PublicInstance, SessionState
from .registry import InstanceRegistry
from .resolver import EndpointResolver
from .session import SessionStore
from .settings import InstanceSettings
from .transfer import SubscriptionTransfer, TransferReport

__all__ = [
    "ApiError",
    "AuthError",
    "ConfigError",
    "CustomInstance",
    "EndpointResolver",
    "InstanceChoice",
    "InstanceRegistry",
    "InstanceSettings",
    "InvalidInstanceError",
    "PublicInstance",
    "SessionState",
    "SessionStore",
    "SubscriptionFormatError",
    "SubscriptionTransfer",
    "TransferError",
    "TransferReport",
    "TubelinkError",
]
