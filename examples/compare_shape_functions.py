import argparse

import matplotlib.pyplot as plt

from tube_fem import TubeSimulator
from tube_fem.analysis import analytical_sweep
from tube_fem.plotting import plot_sweep


def main():
    parser = argparse.ArgumentParser(description="Linear vs. quadratic shape functions")
    parser.add_argument('--alpha', type=float, default=0.3, help='Wall absorption coefficient')
    parser.add_argument('--workers', type=int, default=1, help='Number of parallel processes')
    parser.add_argument('--output', type=str, default='shape_functions.png')
    args = parser.parse_args()

    # 用吸声系数 (Mommertz 1996) 描述末端壁面
    boundary_config = {'model_Z_by_alpha': True, 'alpha': [args.alpha]}

    fig, ax = plt.subplots(figsize=(9, 5))
    for shape_type, name in ((1, 'linear'), (2, 'quadratic')):
        sim = TubeSimulator(mesh_config={'shape_type': shape_type},
                            boundary_config=boundary_config)
        result = sim.run(workers=args.workers, progress=True)
        print(f"{name}: {sim.mesh.n_nodes} nodes, all solved: {result.all_solved}")
        plot_sweep(result, ax=ax, label=f'{name} ({sim.mesh.n_nodes} nodes)')

    # 解析解 (在二次网格节点上取平均)
    p = sim.params
    ref = analytical_sweep(result.frequencies, sim.mesh.x, sim.mesh_config['L'], p['c0'],
                           p['rho0'], sim.u_n, beta=sim.admittances[0], air_damp=p['air_damp'])
    ax.plot(result.frequencies, ref, 'k--', linewidth=1, label='analytical')
    ax.legend()

    Z_ratio = (1 / sim.admittances[0]).real / sim.Z0
    ax.set_title(f'wall absorption coefficient = {args.alpha:.2f}; modelled Z/Z0 = {Z_ratio:.0f}')
    fig.savefig(args.output, dpi=150)
    print(f"Saved plot to {args.output}")


if __name__ == '__main__':
    main()
