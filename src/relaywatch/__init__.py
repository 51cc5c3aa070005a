"""
relaywatch - relay node process supervisor with a polling status channel.
"""

__version__ = "1.0.0"
