"""Storage layer for triage records."""

from src.storage.database import Database
from src.storage.repository import TriageRepository

__all__ = ["Database", "TriageRepository"]
