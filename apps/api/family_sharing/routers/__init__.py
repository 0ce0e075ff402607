from family_sharing.routers import auth, families, health

__all__ = [
    "health",
    "auth",
    "families",
]
