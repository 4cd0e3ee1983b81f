from .model import VERTEX_EPSILON, Coord, Lattice, LatticeRules, DIMENSION_2D, DIMENSION_3D
from .registry import (
    DEFAULT_LATTICE_KEY,
    LatticeRegistry,
    build_registry,
    default_registry,
    lattice_from_dict,
    load_lattice_file,
)
from .builtin import cubic_lattice, metatron_lattice
