"""Simulation constants. Neighbor order is fixed: north, south, west, east."""

CLAMPED = "clamped"
PERIODIC = "periodic"
BOUNDARY_MODES = (CLAMPED, PERIODIC)

# (dx, dy) per neighbor slot; y grows southward like image rows.
NEIGHBOR_OFFSETS = [(0, -1), (0, 1), (-1, 0), (1, 0)]
NORTH, SOUTH, WEST, EAST = 0, 1, 2, 3
NO_CELL = -1

DEFAULT_NX, DEFAULT_NY = 101, 101
DEFAULT_MASS = 10.0
DEFAULT_GAIN = 1.0
# Squared propagation limit for the particle variant (c ~ 0.32 cells/step).
DEFAULT_C2 = 0.1

# Classification indices.
WHITE = 255
BLACK = 0
# Reserved palette slot; the field rules never emit it.
PARTICLE_INDEX = 254
PARTICLE_COLOR = (255, 255, 255)
GRAY_SCALE = 10.0
GRAY_OFFSET = 128.0

PASS_NAMES = ("velocity", "value", "particle_velocity", "particle_value", "render")
