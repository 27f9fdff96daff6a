"""redcaplake clients package.

HTTP API clients only — no business logic in this layer.
The client handles connection management, status checking and response decoding.
"""

from redcaplake.clients.redcap_client import RedcapClient

__all__ = [
    "RedcapClient",
]
