"""
Isospin Clebsch-Gordan coefficients.

All angular-momentum arguments are given in doubled units (2j, 2m) so that
half-integer isospins stay integers.
"""

import math
from typing import List, Optional

from .particles import ParticleType


def _is_valid_pair(j2: int, m2: int) -> bool:
    return j2 >= 0 and abs(m2) <= j2 and (j2 + m2) % 2 == 0


def clebsch_gordan(j_a: int, j_b: int, j_c: int, m_a: int, m_b: int, m_c: int) -> float:
    """
    Clebsch-Gordan coefficient <j_a m_a; j_b m_b | j_c m_c> (Racah formula).

    Parameters
    ----------
    j_a, j_b, j_c, m_a, m_b, m_c : int
        Twice the spins and projections.

    Returns
    -------
    float
        The coefficient; 0 for forbidden couplings.

    Examples
    --------
    >>> round(clebsch_gordan(1, 1, 2, 1, -1, 0) ** 2, 6)
    0.5
    """
    if m_a + m_b != m_c:
        return 0.0
    if not (_is_valid_pair(j_a, m_a) and _is_valid_pair(j_b, m_b) and _is_valid_pair(j_c, m_c)):
        return 0.0
    if j_c < abs(j_a - j_b) or j_c > j_a + j_b or (j_a + j_b + j_c) % 2 != 0:
        return 0.0

    f = math.factorial
    a = (j_a + j_b - j_c) // 2
    b = (j_a - j_b + j_c) // 2
    c = (-j_a + j_b + j_c) // 2
    triangle = f(a) * f(b) * f(c) / f((j_a + j_b + j_c) // 2 + 1)
    prefactor = math.sqrt(
        (j_c + 1) * triangle
        * f((j_c + m_c) // 2) * f((j_c - m_c) // 2)
        * f((j_a - m_a) // 2) * f((j_a + m_a) // 2)
        * f((j_b - m_b) // 2) * f((j_b + m_b) // 2)
    )

    total = 0.0
    for k in range(0, a + 1):
        terms = (
            a - k,
            (j_a - m_a) // 2 - k,
            (j_b + m_b) // 2 - k,
            (j_c - j_b + m_a) // 2 + k,
            (j_c - j_a - m_b) // 2 + k,
        )
        if min(terms) < 0:
            continue
        denom = f(k)
        for t in terms:
            denom *= f(t)
        total += (-1) ** k / denom
    return prefactor * total


def isospin_clebsch_gordan_sqr_2to1(type_a: ParticleType, type_b: ParticleType,
                                    type_r: ParticleType) -> float:
    """Squared CG coefficient for coupling a and b to the isospin state of R."""
    return clebsch_gordan(type_a.isospin2, type_b.isospin2, type_r.isospin2,
                          type_a.isospin3_2, type_b.isospin3_2, type_r.isospin3_2) ** 2


def i_tot_range(type_a: ParticleType, type_b: ParticleType) -> List[int]:
    """Allowed values of twice the total isospin of a pair, highest first."""
    i3 = abs(type_a.isospin3_2 + type_b.isospin3_2)
    lo = max(abs(type_a.isospin2 - type_b.isospin2), i3)
    hi = type_a.isospin2 + type_b.isospin2
    return [i for i in range(hi, lo - 1, -2) if (i + i3) % 2 == 0]


def isospin_clebsch_gordan_sqr_2to2(type_a: ParticleType, type_b: ParticleType,
                                    type_c: ParticleType, type_d: ParticleType,
                                    i_tot: Optional[int] = None) -> float:
    """
    Product of the squared CG coefficients of a + b -> c + d through total
    isospin ``i_tot`` (doubled); summed over all common values if None.
    """
    i3 = type_a.isospin3_2 + type_b.isospin3_2
    if i3 != type_c.isospin3_2 + type_d.isospin3_2:
        return 0.0
    common = set(i_tot_range(type_a, type_b)) & set(i_tot_range(type_c, type_d))
    values = [i_tot] if i_tot is not None else sorted(common)
    result = 0.0
    for i in values:
        if i not in common:
            continue
        cg_in = clebsch_gordan(type_a.isospin2, type_b.isospin2, i,
                               type_a.isospin3_2, type_b.isospin3_2, i3)
        cg_out = clebsch_gordan(type_c.isospin2, type_d.isospin2, i,
                                type_c.isospin3_2, type_d.isospin3_2, i3)
        result += cg_in * cg_in * cg_out * cg_out
    return result
