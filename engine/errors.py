class EngineError(Exception):
    """Base class for lane engine errors."""


class ConfigurationError(EngineError, ValueError):
    """Invalid rules, level config, lane index or archetype. Raised before any tick runs."""


class UnknownArchetype(ConfigurationError, KeyError):
    """Archetype id is not in the unit catalog."""

    def __init__(self, archetype_id: str):
        super().__init__(archetype_id)
        self.archetype_id = archetype_id

    def __str__(self) -> str:
        return f"unknown archetype {self.archetype_id!r}"


class InvariantViolation(EngineError, AssertionError):
    """Simulation state is corrupt. Programming defect, never a gameplay condition."""
