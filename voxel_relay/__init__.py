"""Voxel game relay server.
This package contains the session registry, wire protocol, broadcast router, WebSocket handler, static file serving and startup.
"""

# Expose top-level modules for convenience
__all__ = [
    'state',
    'session',
    'protocol',
    'broadcast',
    'game_ws',
    'http',
    'config',
    'main'
]
