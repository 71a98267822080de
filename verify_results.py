import numpy as np

from tube_fem import TubeSimulator
from tube_fem.analysis import analytical_sweep


def check_accuracy(shape_type=2, Ne_per_lamda_min=6, impedance_ratio=10.0):
    print("--- 开始精度对比 (FEM vs. 解析解) ---")

    sim = TubeSimulator(
        mesh_config={'shape_type': shape_type, 'Ne_per_lamda_min': Ne_per_lamda_min},
        boundary_config={'model_Z_by_alpha': False, 'Z': [1.2 * 340.0 * impedance_ratio]},
    )
    result = sim.run()
    if not result.all_solved:
        print(f"⚠️ 求解失败的频点: {result.failed_frequencies.tolist()}")

    p = sim.params
    ref = analytical_sweep(result.frequencies, sim.mesh.x, sim.mesh_config['L'],
                           p['c0'], p['rho0'], sim.u_n, beta=sim.admittances[0],
                           air_damp=p['air_damp'], p_ref=p['p_ref'])

    err = np.abs(result.values - ref)
    print(f"对比频点数: {result.frequencies.size}")
    print(f"{'f (Hz)':<8} | {'Analytical (dB)':<15} | {'FEM (dB)':<15} | {'Diff (dB)':<15}")
    print("-" * 60)
    for i in np.linspace(0, result.frequencies.size - 1, 6).astype(int):
        print(f"{result.frequencies[i]:<8.1f} | {ref[i]:<15.4f} | {result.values[i]:<15.4f} | {err[i]:<15.2e}")
    print("-" * 60)

    max_err = np.nanmax(err)
    print(f"最大误差 (Max Error): {max_err:.4e} dB")
    if max_err < 0.1:
        print("\n✅ 与解析解吻合。")
    elif max_err < 1.0:
        print("\n⚠️ 误差较小 (可接受)。可增大 Ne_per_lamda_min 或使用二次形函数。")
    else:
        print("\n❌ 误差较大，请检查网格密度与边界参数。")
    return max_err


if __name__ == "__main__":
    check_accuracy()
