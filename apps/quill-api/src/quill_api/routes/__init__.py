"""REST routers for posts and their comments."""

from quill_api.routes.comments import router as comments_router
from quill_api.routes.posts import router as posts_router

__all__ = ["comments_router", "posts_router"]
