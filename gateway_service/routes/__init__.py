"""
Gateway service route modules.

Each module handles one area of the API; all of them sit behind the
governance chain.
"""

from .coaching import router as coaching_router
from .interview import router as interview_router
from .usage import router as usage_router
from .voice import router as voice_router

__all__ = [
    "coaching_router",
    "interview_router",
    "usage_router",
    "voice_router",
]
