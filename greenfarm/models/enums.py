"""Enum types shared by the game engine, schemas and routes.

These are separate from the config enums in greenfarm/config.py:
config enums validate settings, these type the game domain.
"""

from enum import StrEnum

# ── Game lifecycle ──────────────────────────────────────────────────────────


class GameStateEnum(StrEnum):
    """Top-level controller state (tutorial → weather input → playing → game over)."""

    setup = "setup"
    awaiting_configuration = "awaiting_configuration"
    active = "active"
    ended = "ended"


class RoundPhaseEnum(StrEnum):
    """Per-action orchestration phase."""

    idle = "idle"
    evaluating = "evaluating"
    terminal = "terminal"
    advancing = "advancing"


# ── Farm domain ─────────────────────────────────────────────────────────────


class SoilTypeEnum(StrEnum):
    """Soil classification chosen at configuration time."""

    silty = "SILTY"
    sandy = "SANDY"
    chalky = "CHALKY"
    saline = "SALINE"
    rocky = "ROCKY"


class ActionEnum(StrEnum):
    """Player decisions available each round."""

    irrigate = "IRRIGATE"
    fertilize = "FERTILIZE"
    pest_control = "PEST_CONTROL"
    conserve = "CONSERVE"


# ── Content generation ──────────────────────────────────────────────────────


class GenerationErrorKind(StrEnum):
    """Classification attached to collaborator failures."""

    rate_limited = "rate_limited"
    malformed = "malformed"
    unavailable = "unavailable"
    not_configured = "not_configured"
