"""Application context shared by request handlers."""

from dataclasses import dataclass

from pymongo.database import Database

from src.config import Settings


@dataclass(frozen=True)
class AppContext:
    """Settings and database handle built once per application instance."""

    settings: Settings
    db: Database
