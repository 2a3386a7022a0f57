from .config import NoiseLevelConfig, ProfileDefinition
from .statistic import Statistic

__all__ = [
    "NoiseLevelConfig",
    "ProfileDefinition",
    "Statistic",
]
