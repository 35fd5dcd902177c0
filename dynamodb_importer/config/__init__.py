from .config import EVENT_FIELD_MAP, ImporterConfig

__all__ = [
    "EVENT_FIELD_MAP",
    "ImporterConfig",
]
