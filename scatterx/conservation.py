# conservation.py
# Conservation checks for scattering actions: four-momentum for the
# kinematics, charge and baryon number for the channel construction.
from .kinematics import FourVector


def four_momentum_difference(initial_vectors, final_vectors):
    """Summed initial minus summed final four-momentum.

    Examples
    --------
    >>> p_a = FourVector(1.5, 0, 0, 1.2)
    >>> p_b = FourVector(1.5, 0, 0, -1.2)
    >>> four_momentum_difference([p_a, p_b], [FourVector(3.0, 0, 0, 0)]).to_tuple()
    (0.0, 0.0, 0.0, 0.0)
    """
    delta = FourVector(0.0, 0.0, 0.0, 0.0)
    for v in initial_vectors:
        delta = delta + v
    for v in final_vectors:
        delta = delta - v
    return delta


def check_conservation(initial_vectors, final_vectors, tol=1e-6):
    """True if energy and every momentum component balance within ``tol``."""
    delta = four_momentum_difference(initial_vectors, final_vectors)
    return all(abs(c) < tol for c in delta.to_tuple())


def check_energy_momentum(initial_vectors, final_vectors, tol=1e-6):
    """Return diagnostic dict for full 4-momentum conservation.

    Returns dict with deltas for energy and momentum components and a
    boolean 'conserved' key summarizing result within tolerance.
    """
    delta = four_momentum_difference(initial_vectors, final_vectors)
    Ei = sum(v.E for v in initial_vectors)
    return {
        'conserved': all(abs(c) < tol for c in delta.to_tuple()),
        'deltaE': delta.E,
        'deltaPx': delta.px,
        'deltaPy': delta.py,
        'deltaPz': delta.pz,
        'E_initial': Ei,
        'E_final': Ei - delta.E
    }


def conserves_charge(initial_types, final_types):
    return sum(t.charge for t in initial_types) == sum(t.charge for t in final_types)


def conserves_baryon_number(initial_types, final_types):
    return (sum(t.baryon_number for t in initial_types)
            == sum(t.baryon_number for t in final_types))


def conserves_quantum_numbers(initial_types, final_types):
    """Charge and baryon number, the two quantities every channel must conserve."""
    return (conserves_charge(initial_types, final_types) and
            conserves_baryon_number(initial_types, final_types))


__all__ = [
    "four_momentum_difference",
    "check_conservation",
    "check_energy_momentum",
    "conserves_charge",
    "conserves_baryon_number",
    "conserves_quantum_numbers",
]
