"""Contains global constants and default values used throughout the project."""

# === TILE IDS ===

# Sentinel tile id meaning "void": the result of a contradiction, never a generated tile.
VOID_TILE: int = 0
# Marker in a rule's neighbor ids meaning "any tile" (only produced when compiling directional adjacency rules).
WILDCARD: int = -1
# Largest tile id a rule may reference.
TILE_ID_MAX: int = 65535

# === RULES ===

# Score given to a pattern when no explicit score is supplied.
DEFAULT_RULE_SCORE: int = 1
# Largest score a rule (or adjacency record weight) may carry, leaving room in the 64-bit rule table.
RULE_SCORE_MAX: int = (2**63 - 1) // TILE_ID_MAX
# Number of neighbors around a cell (and entries in a rule's 'around').
NEIGHBOR_COUNT: int = 8
# Indices into a row-major 3x3 pattern, listing the border cells clockwise from the top-left neighbor. The first row of
# a pattern is the row below the center (y grows upward).
AROUND_PERMUTATION: tuple[int, ...] = (6, 7, 8, 5, 2, 1, 0, 3)
# Index of the center cell in a row-major 3x3 pattern.
PATTERN_CENTER_INDEX: int = 4
# Upper bound on the number of rules generated for a single tile when compiling directional adjacency records.
ADJACENCY_MAX_RULES_PER_TILE: int = 65536
