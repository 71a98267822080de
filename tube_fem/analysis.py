"""
Post-processing: sound pressure levels and the closed-form reference solution.

The analytical field solves the same boundary value problem as the FEM model,

    p'' + k^2 p = 0,   k^2 = w^2 / (c0^2 (1 + i*air_damp)),
    p'(0) = -w^2 rho0 u_n           (piston, displacement amplitude u_n)
    p'(L) = -i w rho0 beta p(L)     (locally reacting wall, admittance beta)

so FEM and reference share phase conventions and can be compared node by node.
"""
import numpy as np

P_REF = 2e-5


def pressure_level(p_rms, p_ref=P_REF):
    """RMS pressure -> dB re p_ref"""
    return 20 * np.log10(p_rms / p_ref)


def mean_pressure_level(P, p_ref=P_REF):
    """20*log10(mean(|P|/sqrt(2)) / p_ref), P 为节点复声压幅值"""
    return pressure_level(np.mean(np.abs(P) / np.sqrt(2)), p_ref)


def analytical_pressure(x, freq, L, c0, rho0, u_n, beta=0.0, air_damp=0.0):
    """
    Complex pressure of a piston-driven tube closed by a wall of admittance beta.

    Args:
        x: positions (m), 0 <= x <= L
        freq: frequency (Hz)
        L: tube length (m)
        c0, rho0: speed of sound and density of the fluid
        u_n: piston displacement amplitude (m)
        beta: wall admittance 1/Z (0 for a rigid wall)
        air_damp: damping coefficient of the fluid

    Returns:
        Complex pressure at ``x``.
    """
    x = np.asarray(x, dtype=float)
    w = 2 * np.pi * freq
    k = w / (c0 * np.sqrt(1 + 1j * air_damp))
    g = 1j * w * rho0 * beta

    b = -w**2 * rho0 * u_n / k
    kL = k * L
    a = -b * (k * np.cos(kL) + g * np.sin(kL)) / (g * np.cos(kL) - k * np.sin(kL))
    return a * np.cos(k * x) + b * np.sin(k * x)


def analytical_sweep(frequencies, x, L, c0, rho0, u_n, beta=0.0, air_damp=0.0, p_ref=P_REF):
    """Mean RMS level of the analytical field sampled at ``x`` for every frequency."""
    u_n = np.broadcast_to(np.asarray(u_n, dtype=float), np.shape(frequencies))
    return np.array([
        mean_pressure_level(analytical_pressure(x, f, L, c0, rho0, u, beta, air_damp), p_ref)
        for f, u in zip(frequencies, u_n)
    ])


def standing_wave_frequencies(n_modes, L, c0, end='rigid'):
    """
    共振频率: 刚性末端 f_n = n*c0/(2L); 声压释放末端 (Z=0) f_n = (2n-1)*c0/(4L)
    """
    n = np.arange(1, n_modes + 1)
    if end == 'rigid':
        return n * c0 / (2 * L)
    if end == 'soft':
        return (2 * n - 1) * c0 / (4 * L)
    raise ValueError(f"end must be 'rigid' or 'soft', got {end!r}")


def find_peaks_near(frequencies, values, targets, window):
    """每个目标频率附近 (+-window) 的采样最大值所在频率"""
    frequencies = np.asarray(frequencies)
    values = np.asarray(values)
    peaks = []
    for t in np.atleast_1d(targets):
        mask = np.abs(frequencies - t) <= window
        # 窗口为空或全部失败 (NaN)
        if not np.any(mask) or np.all(np.isnan(values[mask])):
            peaks.append(np.nan)
            continue
        peaks.append(frequencies[mask][np.nanargmax(values[mask])])
    return np.array(peaks)
