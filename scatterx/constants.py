"""
Physical and numerical constants for ScatterX.

Units: GeV for energies/masses/momenta, fm for lengths and times, mb for
cross sections (c = 1).
"""

import math

# GeV <-> fm conversion factor
HBARC = 0.197327053

# mb <-> fm^2 conversion factor
FM2_MB = 0.1

# Numerical error tolerance
REALLY_SMALL = 1.0e-6

TWOPI = 2.0 * math.pi

# Nucleon mass (GeV), shared by p and n
NUCLEON_MASS = 0.938

PION_MASS = 0.138

# Interaction radius for Blatt-Weisskopf form factors (fm)
INTERACTION_RADIUS = 1.0

# Widths below this (GeV) mark a species as stable
STABLE_WIDTH_CUTOFF = 1.0e-5

# -----------------------------
# Regime mixing windows (GeV)
# -----------------------------
NN_MIX_ENERGY = 4.5
NN_MIX_WINDOW = 0.5
PIN_MIX_ENERGY = 2.05
PIN_MIX_WINDOW = 0.15

# Hard strings need a minimum collision energy (GeV)
MINIMUM_SQRTS_HARD_STRING = 10.0

# -----------------------------
# String fragmentation
# -----------------------------
# Coherence suppression applied on top of valence-content fractions
STRING_SUPPRESSION_FACTOR = 0.7
BARYON_RANK_FRACTIONS = (0.66, 0.34)
MESON_RANK_FRACTIONS = (0.50, 0.50)

SOFT_STRING_MAX_TRIES = 10000

# Absolute tolerance for the string sub-cross-section sum
STRING_PARTITION_TOLERANCE = 1.0e-6
