from .gateway import socketio, registry

__all__ = ['socketio', 'registry']
