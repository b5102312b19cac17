"""Blobworld exception hierarchy.

Failures either abort the operation they belong to or propagate to the
caller; the core never substitutes default state for a failed step.
"""


class BlobworldError(Exception):
    """Root of all blobworld domain exceptions."""


class ConfigurationError(BlobworldError):
    """Invalid or inconsistent configuration."""


class SimulationError(BlobworldError):
    """Errors during simulation execution."""


class TickError(SimulationError):
    """An agent task failed; the whole tick is abandoned."""


class GeneticsError(SimulationError):
    """Evolution received a population it cannot breed from."""


class PersistenceError(BlobworldError):
    """Errors during save / load of simulation state."""
