"""
边界模型: 吸声系数 / 复声阻抗 -> 声导纳。

Absorption coefficients are converted with Mommertz's method assuming zero
phase difference between sound pressure and normal particle velocity at the
wall:

    R = sqrt(1 - alpha),   Z / Z0 = (1 + R) / (1 - R)

Literature: Mommertz, E. (1996): Untersuchung akustischer Wandeigenschaften
und Modellierung der Schallrueckwuerfe in der binauralen Raumsimulation.
Dissertation, RWTH Aachen, p. 122.
"""
import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

logger = logging.getLogger(__name__)

# Z = 0 时使用的有限导纳 (避免无穷大, 保持系统矩阵可解)
MAX_ADMITTANCE = 1e10


def check_alpha(alpha):
    if not 0.0 < alpha < 1.0:
        raise ValueError(f"absorption coefficient must lie in ]0,1[, got {alpha}")


def alpha_to_impedance(alpha, Z0=1.0):
    """吸声系数 -> 实声阻抗 (零相位假设)。Z0=1 时返回归一化阻抗 Z/Z0。"""
    check_alpha(alpha)
    R = np.sqrt(1.0 - alpha)
    return Z0 * (1.0 + R) / (1.0 - R)


def impedance_to_alpha(Z, Z0=1.0):
    """实声阻抗 -> 吸声系数, alpha_to_impedance 的逆运算。"""
    z = np.real(Z) / Z0
    if z <= 0:
        raise ValueError(f"impedance must have a positive real part, got {Z}")
    return 4.0 * z / (1.0 + z)**2


def boundary_admittance(Z):
    """
    beta = 1/Z。Z 为无穷大 (刚性壁) 时返回 0; |1/Z| 超过 MAX_ADMITTANCE (含 Z = 0)
    时模长截断为 MAX_ADMITTANCE, 相位保持不变。
    """
    Z = complex(Z)
    if np.isnan(Z.real) or np.isnan(Z.imag):
        raise ValueError("impedance must not be NaN")
    if np.isinf(Z.real) or np.isinf(Z.imag):
        return 0j
    if Z.real < 0:
        raise ValueError(f"impedance must have a non-negative real part, got {Z}")
    if Z == 0:
        logger.warning("Zero boundary impedance, clamping admittance to %.1e", MAX_ADMITTANCE)
        return complex(MAX_ADMITTANCE)
    beta = 1.0 / Z
    if abs(beta) > MAX_ADMITTANCE:
        logger.warning("Boundary impedance %s below 1/MAX_ADMITTANCE, clamping admittance to %.1e",
                       Z, MAX_ADMITTANCE)
        return beta / abs(beta) * MAX_ADMITTANCE
    return beta


@dataclass(frozen=True)
class Boundary:
    """A boundary at position ``x`` given by either an impedance or an alpha."""
    x: float
    impedance: Optional[complex] = None
    alpha: Optional[float] = None

    def __post_init__(self):
        if (self.impedance is None) == (self.alpha is None):
            raise ValueError("give exactly one of impedance or alpha")
        if self.alpha is not None:
            check_alpha(self.alpha)

    def resolve_impedance(self, Z0):
        if self.alpha is not None:
            Z = alpha_to_impedance(self.alpha, Z0)
            logger.info("Modelled specific impedance (Mommertz, 1996) for boundary at "
                        "x = %.3f with absorption coefficient %.2f: Z/Z0 = %.0f",
                        self.x, self.alpha, Z / Z0)
            return complex(Z)
        return complex(self.impedance)

    def admittance(self, Z0):
        return boundary_admittance(self.resolve_impedance(Z0))


def boundaries_from_config(boundary_config):
    """BOUNDARY_CONFIG 字典 -> Boundary 列表"""
    xs = list(np.atleast_1d(boundary_config['boundary_x']))
    if boundary_config.get('model_Z_by_alpha', False):
        alphas = list(np.atleast_1d(boundary_config['alpha']))
        if len(alphas) != len(xs):
            raise ValueError("alpha must give one value per boundary position")
        return [Boundary(x=float(x), alpha=float(a)) for x, a in zip(xs, alphas)]

    Zs = list(np.atleast_1d(boundary_config['Z']))
    if len(Zs) != len(xs):
        raise ValueError("Z must give one value per boundary position")
    return [Boundary(x=float(x), impedance=complex(Z)) for x, Z in zip(xs, Zs)]
