from dbview.web.routers.metadata import router as metadata_router
from dbview.web.routers.views import router as views_router
from dbview.web.routers.visibility import router as visibility_router

__all__ = [
    "metadata_router",
    "views_router",
    "visibility_router",
]
