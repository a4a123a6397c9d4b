import argparse
from pathlib import Path

from scatterx.particles import ParticleType, load_particle_table


def list_particles():
    print("=== Particles in Catalog ===")
    for ptype in ParticleType.list_all():
        stable = "stable" if ptype.is_stable else f"Γ = {ptype.width:.3f} GeV"
        print(f"{ptype.name:14s} | PDG ID: {ptype.pdg:7d} | m = {ptype.mass:.3f} GeV | "
              f"J = {ptype.spin} | Q = {ptype.charge:+d} | B = {ptype.baryon_number:+d} | {stable}")


def list_decays(pdg_id):
    ptype = ParticleType.find(pdg_id)
    print(f"=== Decays of {ptype.name} (PDG ID {pdg_id}) ===")
    if not ptype.decay_modes:
        print("stable")
    for mode in ptype.decay_modes:
        names = " ".join(t.name for t in mode.product_types())
        print(f"{names} ({mode.branching_ratio * 100:.2f}%, L = {mode.angular_momentum})")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Print the ScatterX particle catalog")
    parser.add_argument("--db", type=Path, default=None, help="SQLite catalog (default: bundled tables)")
    parser.add_argument("--decays", type=int, nargs="*", default=None,
                        help="PDG IDs whose decay modes to print (default: all unstable)")
    args = parser.parse_args()

    load_particle_table(args.db)
    list_particles()
    codes = args.decays
    if codes is None:
        codes = [t.pdg for t in ParticleType.list_all() if not t.is_stable and t.pdg > 0]
    for pdg in codes:
        print()
        list_decays(pdg)
