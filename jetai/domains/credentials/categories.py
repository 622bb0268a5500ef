"""Service categories and their credential-group try order."""

from enum import Enum
from types import MappingProxyType


class ServiceCategory(str, Enum):
    """External-service categories that draw from the credential groups."""

    MODEL_GENERATION = "model_generation"
    PRODUCTIVITY_SUITE = "productivity_suite"
    REALTIME_DATA_STORE = "realtime_data_store"
    MAPPING = "mapping"
    IMAGE_ANALYSIS = "image_analysis"
    TRANSLATION = "translation"
    SPEECH_SYNTHESIS = "speech_synthesis"
    VIDEO_ANALYSIS = "video_analysis"
    OBJECT_STORAGE = "object_storage"
    SECRET_STORAGE = "secret_storage"


# Each category leans on a different group first.
GROUP_PREFERENCES = MappingProxyType(
    {
        ServiceCategory.MODEL_GENERATION: (1, 2, 3, 4, 5),
        ServiceCategory.PRODUCTIVITY_SUITE: (2, 3, 4, 5, 1),
        ServiceCategory.REALTIME_DATA_STORE: (3, 4, 5, 2, 1),
        ServiceCategory.MAPPING: (1, 5, 3, 2, 4),
        ServiceCategory.IMAGE_ANALYSIS: (5, 1, 2, 3, 4),
        ServiceCategory.TRANSLATION: (5, 1, 2, 3, 4),
        ServiceCategory.SPEECH_SYNTHESIS: (5, 2, 1, 3, 4),
        ServiceCategory.VIDEO_ANALYSIS: (5, 1, 2, 3, 4),
        ServiceCategory.OBJECT_STORAGE: (3, 5, 2, 1, 4),
        ServiceCategory.SECRET_STORAGE: (2, 5, 3, 1, 4),
    }
)


def preferred_groups(category: ServiceCategory) -> tuple[int, ...]:
    """Return the group try order for a category."""
    return GROUP_PREFERENCES[ServiceCategory(category)]
