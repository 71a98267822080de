"""
一维均匀网格生成。

网格按扫频中最小波长确定尺寸, 整个扫频共用同一网格。
"""
import logging
import math
from dataclasses import dataclass

import numpy as np

logger = logging.getLogger(__name__)

SUPPORTED_SHAPE_TYPES = (1, 2)


@dataclass(frozen=True)
class Mesh1D:
    """Uniform 1D mesh of a tube of length ``length``.

    ``elements[e]`` holds the ``shape_type + 1`` consecutive node indices of
    element ``e``; neighbouring elements share their end node.
    """
    x: np.ndarray
    elements: np.ndarray
    h: float
    shape_type: int
    length: float

    @property
    def n_nodes(self):
        return self.x.shape[0]

    @property
    def n_elements(self):
        return self.elements.shape[0]

    @property
    def nodes_per_element(self):
        return self.shape_type + 1


def check_shape_type(shape_type):
    if shape_type not in SUPPORTED_SHAPE_TYPES:
        raise ValueError(
            f"shape_type must be 1 (linear) or 2 (quadratic), got {shape_type!r}")


def element_count(L, lamda_min, Ne_per_lamda_min=6):
    """Ne = ceil(Ne_per_lamda_min * L / lamda_min)"""
    return int(math.ceil(Ne_per_lamda_min * L / lamda_min))


def generate_mesh(L, lamda_min, shape_type=2, Ne_per_lamda_min=6):
    """
    生成均匀一维网格, 保证最小波长内至少有 Ne_per_lamda_min 个单元。

    Args:
        L (float): 管长 (m)
        lamda_min (float): 最小波长 c0 / max(freq) (m)
        shape_type (int): 1 线性, 2 二次
        Ne_per_lamda_min (float): 每个最小波长内的单元数

    Returns:
        Mesh1D
    """
    if L <= 0:
        raise ValueError(f"tube length L must be positive, got {L}")
    if lamda_min <= 0:
        raise ValueError(f"lamda_min must be positive, got {lamda_min}")
    if Ne_per_lamda_min <= 0:
        raise ValueError(f"Ne_per_lamda_min must be positive, got {Ne_per_lamda_min}")
    check_shape_type(shape_type)

    Ne = element_count(L, lamda_min, Ne_per_lamda_min)
    Nn = shape_type * Ne + 1
    h = L / Ne

    # linspace 保证最后一个节点精确落在 x = L
    x = np.linspace(0.0, L, Nn)

    first = shape_type * np.arange(Ne)
    elements = first[:, None] + np.arange(shape_type + 1)[None, :]

    logger.info("Generated mesh: %d elements, %d nodes, h=%.4g m (shape_type=%d)",
                Ne, Nn, h, shape_type)
    return Mesh1D(x=x, elements=elements, h=h, shape_type=shape_type, length=L)


def nearest_nodes(x, positions):
    """
    将物理位置映射到最近的网格节点 (最小绝对距离, 并列时取较小的索引)。
    """
    positions = np.atleast_1d(np.asarray(positions, dtype=float))
    return np.argmin(np.abs(x[None, :] - positions[:, None]), axis=1)
