import numpy as np
import matplotlib.pyplot as plt

from scatterx import ParticleData, ParticleType, ScatterAction, ScatterConfig
from scatterx.config import IncludedReactions
from scatterx.kinematics import pcm
from scatterx.parametrizations import (
    np_elastic,
    np_high_energy,
    pp_elastic,
    pp_high_energy,
    ppbar_elastic,
    ppbar_total,
)
from scatterx.process import ProcessType

M_N = 0.938  # Nucleon mass in GeV


def pp_channel_weights(sqrts_grid):
    """Elastic, N Delta and N N* cross sections of p + p from ScatterAction branches."""
    proton = ParticleType.find(2212)
    config = ScatterConfig(strings_switch=False, two_to_one=False,
                           included_2to2=IncludedReactions.ALL, low_snn_cut=0.0)
    elastic, n_delta, n_nstar = [], [], []
    for srts in sqrts_grid:
        p = pcm(srts, proton.mass, proton.mass)
        a = ParticleData(proton)
        a.set_4momentum(proton.mass, 0.0, 0.0, p)
        b = ParticleData(proton)
        b.set_4momentum(proton.mass, 0.0, 0.0, -p)
        action = ScatterAction(a, b, 0.0)
        action.add_all_processes(config)
        el = sum(br.weight for br in action.branches.of_type(ProcessType.ELASTIC))
        inel = action.branches.of_type(ProcessType.TWO_TO_TWO)
        elastic.append(el)
        n_delta.append(sum(br.weight for br in inel if br.particle_types[0].is_delta))
        n_nstar.append(sum(br.weight for br in inel if br.particle_types[0].is_nstar))
    return np.array(elastic), np.array(n_delta), np.array(n_nstar)


def main():
    sqrts = np.linspace(2 * M_N + 0.02, 6.0, 300)
    s = sqrts ** 2

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))

    ax1.plot(sqrts, [pp_elastic(x) for x in s], label='pp elastic')
    ax1.plot(sqrts, [np_elastic(x) for x in s], label='np elastic')
    ax1.plot(sqrts, [pp_high_energy(x) for x in s], '--', label='pp total (high energy)')
    ax1.plot(sqrts, [np_high_energy(x) for x in s], '--', label='np total (high energy)')
    ax1.plot(sqrts, [ppbar_elastic(x) for x in s], ':', label=r'$p\bar{p}$ elastic')
    ax1.plot(sqrts, [ppbar_total(x) for x in s], ':', label=r'$p\bar{p}$ total')
    ax1.set_xlabel(r'$\sqrt{s}$ [GeV]')
    ax1.set_ylabel(r'$\sigma$ [mb]')
    ax1.set_ylim(0, 150)
    ax1.set_title('Parametrized cross sections')
    ax1.grid(alpha=0.3)
    ax1.legend()

    grid = np.linspace(2 * M_N + 0.01, 3.5, 60)
    elastic, n_delta, n_nstar = pp_channel_weights(grid)
    ax2.plot(grid, elastic, label='elastic')
    ax2.plot(grid, n_delta, label=r'$N\Delta$')
    ax2.plot(grid, n_nstar, label=r'$NN^*$')
    ax2.plot(grid, elastic + n_delta + n_nstar, 'k--', label='sum')
    ax2.set_xlabel(r'$\sqrt{s}$ [GeV]')
    ax2.set_ylabel(r'$\sigma$ [mb]')
    ax2.set_title(r'$p + p$ channel weights')
    ax2.grid(alpha=0.3)
    ax2.legend()

    plt.tight_layout()
    plt.show()


if __name__ == "__main__":
    main()
