import matplotlib.pyplot as plt
import numpy as np

YLABELS = {
    'level': 'mean RMS sound pressure level in waveguide in dB',
    'quadratic': 'space-averaged quadratic sound pressure',
}


def plot_sweep(result, ax=None, label=None, reference=None, title=None):
    """
    绘制扫频曲线; 失败频点以竖虚线标出。

    Args:
        result: SweepResult
        ax: matplotlib Axes, 缺省时新建
        label: 曲线图例
        reference: 可选解析解 (与 result.frequencies 等长)
        title: 图标题
    """
    if ax is None:
        _, ax = plt.subplots(figsize=(8, 5))

    ax.plot(result.frequencies, result.values, linewidth=2, label=label or 'FEM')
    if reference is not None:
        ax.plot(result.frequencies, np.asarray(reference), 'k--', linewidth=1, label='analytical')
    for freq in result.failed_frequencies:
        ax.axvline(freq, color='r', linestyle=':', linewidth=0.8)

    ax.set_xlabel('Frequency in Hz', fontweight='bold', fontsize=11)
    ax.set_ylabel(YLABELS.get(result.reduction, result.reduction), fontweight='bold', fontsize=11)
    if title:
        ax.set_title(title)
    ax.legend()
    return ax
