# Infrastructure Adapters Package
from .json_store import JsonFileStudyRepository
from .memory_store import InMemoryStudyRepository

__all__ = ["InMemoryStudyRepository", "JsonFileStudyRepository"]
