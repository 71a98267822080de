import argparse
import logging
import os
import time

import numpy as np

from tube_fem import TubeSimulator
from tube_fem.utils import save_results_to_hdf5, save_results_to_npy


def parse_impedance(text):
    """'inf' -> 刚性壁; 支持复数形式, 例如 '4080+200j'"""
    if text.strip().lower() in ('inf', 'infinity', 'rigid'):
        return np.inf
    return complex(text.replace(' ', ''))


def main():
    parser = argparse.ArgumentParser(description="1D Tube Acoustic FEM Frequency Sweep")
    parser.add_argument('--length', type=float, default=1.0, help='Tube length L (m)')
    parser.add_argument('--shape', type=int, choices=(1, 2), default=2, help='1 linear, 2 quadratic')
    parser.add_argument('--ne-per-lambda', type=float, default=6, help='Elements per minimum wavelength')
    parser.add_argument('--fmin', type=float, default=2.0)
    parser.add_argument('--fmax', type=float, default=1000.0)
    parser.add_argument('--fstep', type=float, default=2.0)
    parser.add_argument('--damping', type=float, default=0.0, help='Air damping coefficient')
    parser.add_argument('--displacement', type=float, default=1e-6, help='Piston displacement (m)')
    parser.add_argument('--piston-x', type=float, nargs='+', default=[0.0])
    parser.add_argument('--boundary-x', type=float, nargs='+', default=None)
    group = parser.add_mutually_exclusive_group()
    group.add_argument('--alpha', type=float, nargs='+', help='Absorption coefficient(s), ]0,1[')
    group.add_argument('--impedance', type=str, nargs='+',
                       help="Complex impedance(s) in Pa*s/m, 'inf' for a rigid wall")
    parser.add_argument('--solver', choices=('direct', 'gmres'), default='direct')
    parser.add_argument('--reduction', choices=('level', 'quadratic'), default='level')
    parser.add_argument('--workers', type=int, default=1, help='Number of parallel processes')
    parser.add_argument('--output', type=str, default='results')
    parser.add_argument('--plot', action='store_true', help='Save a plot of the sweep')
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s: %(message)s')

    boundary_x = args.boundary_x if args.boundary_x is not None else [args.length]
    boundary_config = {'boundary_x': boundary_x}
    if args.alpha is not None:
        boundary_config.update({'model_Z_by_alpha': True, 'alpha': args.alpha})
    elif args.impedance is not None:
        boundary_config.update({'model_Z_by_alpha': False,
                                'Z': [parse_impedance(z) for z in args.impedance]})

    sim = TubeSimulator(
        physics_config={'air_damp': args.damping},
        mesh_config={'L': args.length, 'shape_type': args.shape,
                     'Ne_per_lamda_min': args.ne_per_lambda},
        source_config={'piston_x': args.piston_x, 'u_n': args.displacement},
        boundary_config=boundary_config,
        sweep_config={'f_min': args.fmin, 'f_max': args.fmax, 'f_step': args.fstep},
        solver_config={'solver': args.solver, 'reduction': args.reduction},
    )
    print(f"Mesh: {sim.mesh.n_elements} elements, {sim.mesh.n_nodes} nodes")

    start_time = time.time()
    result = sim.run(workers=args.workers, progress=True)
    elapsed = time.time() - start_time

    os.makedirs(args.output, exist_ok=True)
    save_results_to_npy(args.output, result)
    save_results_to_hdf5(os.path.join(args.output, 'sweep.h5'), result,
                         attrs={'L': args.length, 'shape_type': args.shape, 'solver': args.solver})

    if args.plot:
        import matplotlib
        matplotlib.use('Agg')
        from tube_fem.plotting import plot_sweep
        Z0 = sim.Z0
        z_ratio = abs(1 / sim.admittances[0]) / Z0 if sim.admittances[0] != 0 else np.inf
        ax = plot_sweep(result, label=f'Z/Z0 = {z_ratio:.0f}')
        ax.figure.savefig(os.path.join(args.output, 'sweep.png'), dpi=150)

    if result.all_solved:
        print(f"✅ All {result.frequencies.size} frequencies solved (Time: {elapsed:.2f}s)")
    else:
        print(f"⚠️ {len(result.failures)} of {result.frequencies.size} frequencies failed: "
              f"{result.failed_frequencies.tolist()} (Time: {elapsed:.2f}s)")
    print(f"Saved results to {args.output}/")


if __name__ == '__main__':
    main()
