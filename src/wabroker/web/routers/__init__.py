from wabroker.web.routers.messages import router as messages_router
from wabroker.web.routers.sessions import router as sessions_router

__all__ = [
    "messages_router",
    "sessions_router",
]
