from .channel import register_status_channel

__all__ = ["register_status_channel"]
