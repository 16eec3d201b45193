from dataclasses import dataclass

from sqlalchemy.engine import Engine

from backtrack.core.config import Settings
from backtrack.utils.media_store import MediaStore


@dataclass
class AppContext:
    """Process-wide collaborators built once at startup and passed explicitly."""

    settings: Settings
    engine: Engine
    media: MediaStore
