from .token import router as token_router

__all__ = ["token_router"]
