"""Initialize web package."""
from .server import create_app, error_middleware, WebSocketObserver

__all__ = ['create_app', 'error_middleware', 'WebSocketObserver']
