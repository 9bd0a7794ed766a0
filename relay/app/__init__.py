"""
Session Relay Application
=========================

Real-time relay for collaborative sessions. Tracks connected participants,
fans out application commands between them and keeps one shared elapsed-time
counter in sync for everyone.

Subpackages:
    - realtime: WebSocket endpoint, presence registry, shared timer, fan-out
    - discovery: LAN address lookup endpoint
"""
