from fastapi import APIRouter

from frequency.api.v1.endpoints import auth, users, friends, playlists, catalog

api_router = APIRouter()

# Include routers
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(friends.router, prefix="/friends", tags=["friends"])
api_router.include_router(playlists.router, prefix="/playlists", tags=["playlists"])
api_router.include_router(catalog.router, tags=["catalog"])
