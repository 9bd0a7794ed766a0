"""
Discovery Package
=================

Lets clients locate the relay on the local network.

Main Components:
----------------
- routes.py: FastAPI router with the /ip endpoint
- network.py: Detection of the host's non-loopback IPv4 address

Usage:
------
    from relay.app.discovery import discovery_router
    app.include_router(discovery_router)
"""

from .network import detect_local_ip
from .routes import discovery_router

__all__ = ["discovery_router", "detect_local_ip"]
