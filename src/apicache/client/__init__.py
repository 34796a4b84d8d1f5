"""HTTP transport module for apicache.

Classes:
    :class:`Transport` -- abstract async request function.
    :class:`HttpxTransport` -- default implementation over :mod:`httpx`.
"""

from apicache.client.transport import HttpxTransport, Transport

__all__ = ["HttpxTransport", "Transport"]
