import argparse
import sqlite3
from pathlib import Path

from scatterx.particles import DECAYS_CSV, PARTICLES_CSV, import_particle_csv

# === Paths ===
BASE_DIR = Path(__file__).resolve().parents[1]
DB_PATH = BASE_DIR / "scatterx.db"

parser = argparse.ArgumentParser(description="Write the particle and decay tables into a SQLite file")
parser.add_argument("--db", type=Path, default=DB_PATH, help=f"Output database (default {DB_PATH})")
parser.add_argument("--particles", type=Path, default=PARTICLES_CSV, help="Particle table CSV")
parser.add_argument("--decays", type=Path, default=DECAYS_CSV, help="Decay table CSV")
args = parser.parse_args()

# === Connect to DB and import ===
conn = sqlite3.connect(args.db)
n_species, n_modes = import_particle_csv(conn, args.particles, args.decays)
conn.close()

print(f"✅ Done! Wrote {n_species} species and {n_modes} decay modes (antiparticles included).")
print(f"📦 Database: {args.db}")
