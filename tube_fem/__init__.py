import os
if os.environ.get("TUBE_FEM_FORCE_SINGLE_THREAD", "True") == "True":
    os.environ["OMP_NUM_THREADS"] = "1"
    os.environ["MKL_NUM_THREADS"] = "1"
    os.environ["OPENBLAS_NUM_THREADS"] = "1"
    os.environ["VECLIB_MAXIMUM_THREADS"] = "1"
    os.environ["NUMEXPR_NUM_THREADS"] = "1"

# tube_fem/__init__.py
from .simulation import TubeSimulator, SweepResult
from .core import TubeFEMSolver, SolveError, SingularSystemError, ConvergenceError
from .mesh import Mesh1D, generate_mesh, nearest_nodes
from .elements import element_matrices
from .boundary import Boundary, alpha_to_impedance, impedance_to_alpha, boundary_admittance, MAX_ADMITTANCE

# 也可以直接暴露常用的配置，方便外部修改
from .defaults import PHYSICS_PARAMS, MESH_CONFIG, SOURCE_CONFIG, BOUNDARY_CONFIG, SWEEP_CONFIG, SOLVER_CONFIG

from .utils import load_mesh_2d, filter_boundary_edges, inside_box, save_results_to_npy, save_results_to_hdf5

__all__ = [
    'TubeSimulator', 'SweepResult', 'TubeFEMSolver',
    'SolveError', 'SingularSystemError', 'ConvergenceError',
    'Mesh1D', 'generate_mesh', 'nearest_nodes', 'element_matrices',
    'Boundary', 'alpha_to_impedance', 'impedance_to_alpha', 'boundary_admittance', 'MAX_ADMITTANCE',
    'PHYSICS_PARAMS', 'MESH_CONFIG', 'SOURCE_CONFIG', 'BOUNDARY_CONFIG', 'SWEEP_CONFIG', 'SOLVER_CONFIG',
    'load_mesh_2d', 'filter_boundary_edges', 'inside_box', 'save_results_to_npy', 'save_results_to_hdf5',
]
