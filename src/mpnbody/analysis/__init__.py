"""
Analysis layer: derived quantities for inspection and validation.

IMPORTANT: This is NOT seen by the simulation. One-way derivation only.

- total_momentum / center_of_mass_velocity: must stay constant
- kinetic / potential / total energy: drift indicators
- compare_tables: distributed run vs sequential reference
"""

from mpnbody.analysis.diagnostics import (
    TableComparison,
    center_of_mass,
    center_of_mass_velocity,
    compare_tables,
    kinetic_energy,
    potential_energy,
    total_energy,
    total_momentum,
)

__all__ = [
    "TableComparison",
    "center_of_mass",
    "center_of_mass_velocity",
    "compare_tables",
    "kinetic_energy",
    "potential_energy",
    "total_energy",
    "total_momentum",
]
