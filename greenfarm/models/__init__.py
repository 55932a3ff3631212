"""Domain enum registry.

Application code can do::

    from greenfarm.models import ActionEnum, GameStateEnum, ...
"""

from greenfarm.models.enums import (
    ActionEnum,
    GameStateEnum,
    GenerationErrorKind,
    RoundPhaseEnum,
    SoilTypeEnum,
)

__all__ = [
    "ActionEnum",
    "GameStateEnum",
    "GenerationErrorKind",
    "RoundPhaseEnum",
    "SoilTypeEnum",
]
