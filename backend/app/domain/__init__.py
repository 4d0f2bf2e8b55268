"""Domain contracts and shared types."""

from backend.app.domain.contracts import (  # noqa: F401
    CATEGORIES,
    CATEGORIZATION_SOURCES,
    MATCH_TYPES,
    CategorizationContract,
    RemoteEntityType,
    WriteBackErrorContract,
    WriteBackItemContract,
    WriteBackPreviewContract,
    WriteBackResultContract,
)
