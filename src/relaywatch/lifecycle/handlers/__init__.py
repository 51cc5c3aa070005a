from .api_server_shutdown_handler import APIServerShutdownHandler
from .node_shutdown_handler import NodeShutdownHandler
from .subscription_shutdown_handler import SubscriptionShutdownHandler

__all__ = [
    "APIServerShutdownHandler",
    "NodeShutdownHandler",
    "SubscriptionShutdownHandler",
]
