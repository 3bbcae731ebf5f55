"""Exception hierarchy. Construction and shape errors are also ValueErrors."""


class WavefieldError(Exception):
    """Base for all simulation errors."""


class LatticeError(WavefieldError, ValueError):
    """Bad lattice dimensions, mass, boundary mode or coordinates."""


class DimensionMismatchError(LatticeError):
    """A paired buffer does not match the lattice shape."""


class ParticleError(WavefieldError):
    """Particle placement breaks the one-particle-per-cell rule."""


class SimulationError(WavefieldError, ValueError):
    """Invalid run parameters, or a simulation reused after its run."""


class PassError(WavefieldError):
    """A worker task raised during a pass; the lattice state is corrupt."""
