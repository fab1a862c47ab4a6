from fastapi import APIRouter

from .routes import accounts, ai, insights, locations, oauth, posts, presence, reviews, sync

api_router = APIRouter()

api_router.include_router(oauth.router)
api_router.include_router(sync.router)
api_router.include_router(accounts.router)
api_router.include_router(locations.router)
api_router.include_router(reviews.router)
api_router.include_router(posts.router)
api_router.include_router(insights.router)
api_router.include_router(presence.router)
api_router.include_router(ai.router)
