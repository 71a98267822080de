import numpy as np

from .mesh import check_shape_type


def element_matrices(shape_type, h, c0):
    """
    单元刚度矩阵 K_e 与质量矩阵 M_e (Galerkin 法, 长度为 h 的单元)。

    质量矩阵已除以 c0^2, 因此系统矩阵为 K - w^2 * M。
    """
    check_shape_type(shape_type)

    if shape_type == 1:
        # 线性形函数
        Ke = np.array([
            [1, -1],
            [-1, 1]
        ]) / h
        Me = h * np.array([
            [2, 1],
            [1, 2]
        ]) / (6.0 * c0**2)
    else:
        # 二次形函数 (中间节点位于单元中点)
        Ke = np.array([
            [7, -8, 1],
            [-8, 16, -8],
            [1, -8, 7]
        ]) / (3.0 * h)
        Me = h * np.array([
            [4, 2, -1],
            [2, 16, 2],
            [-1, 2, 4]
        ]) / (30.0 * c0**2)

    return Ke, Me
