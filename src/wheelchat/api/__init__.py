from .chat import router

__all__ = ["router"]
