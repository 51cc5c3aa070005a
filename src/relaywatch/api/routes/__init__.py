from . import status

__all__ = ["status"]
