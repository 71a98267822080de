import logging
import os
from dataclasses import dataclass

import h5py
import numpy as np

from .simulation import SweepResult

logger = logging.getLogger(__name__)


@dataclass
class Mesh2D:
    """外部生成的二维三角形网格 (索引从 0 开始)"""
    nodes: np.ndarray            # (Nn, 2) 节点坐标
    elements: np.ndarray         # (Ne, 3) 单元节点
    domains: np.ndarray          # (Ne,) 材料/区域编号
    boundary_edges: np.ndarray   # (Nb, 2) 边界线单元

    @property
    def boundary_nodes(self):
        return np.unique(self.boundary_edges)


def load_mesh_2d(directory):
    """
    读取 nodes.txt / elements.txt / domains.txt / bcs.txt
    """
    def _load(name, dtype=float, ndmin=2):
        return np.loadtxt(os.path.join(directory, name), dtype=dtype, ndmin=ndmin)

    mesh = Mesh2D(
        nodes=_load('nodes.txt')[:, :2],
        elements=_load('elements.txt', dtype=int)[:, :3],
        domains=_load('domains.txt', dtype=int, ndmin=1),
        boundary_edges=_load('bcs.txt', dtype=int)[:, :2],
    )
    if mesh.domains.shape[0] != mesh.elements.shape[0]:
        raise ValueError("domains.txt must give one domain per element")
    logger.info("Loaded 2D mesh from %s: %d nodes, %d elements, %d boundary edges",
                directory, mesh.nodes.shape[0], mesh.elements.shape[0],
                mesh.boundary_edges.shape[0])
    return mesh


def inside_box(x_min, x_max, y_min, y_max):
    """矩形排除区域 (含边界) 的判定函数"""
    def predicate(xy):
        return ((xy[:, 0] >= x_min) & (xy[:, 0] <= x_max)
                & (xy[:, 1] >= y_min) & (xy[:, 1] <= y_max))
    return predicate


def filter_boundary_edges(nodes, edges, exclude):
    """
    删除任一端点满足 exclude 的边界线单元 (例如活塞外壳内部的边界)。

    Args:
        nodes: (Nn, 2) 节点坐标
        edges: (Nb, 2) 边界线单元
        exclude: callable, 输入 (N, 2) 坐标, 返回布尔数组
    """
    edges = np.asarray(edges, dtype=int)
    if edges.size == 0:
        return edges.reshape(0, 2)
    hit = np.asarray(exclude(nodes[edges.ravel()]), dtype=bool).reshape(edges.shape)
    kept = edges[~hit.any(axis=1)]
    logger.info("Removed %d of %d boundary edges", edges.shape[0] - kept.shape[0], edges.shape[0])
    return kept


def boundary_node_flags(n_nodes, edges):
    """节点是否位于边界上"""
    flags = np.zeros(n_nodes, dtype=bool)
    flags[np.asarray(edges, dtype=int).ravel()] = True
    return flags


def save_results_to_npy(output_dir, result, prefix='sweep'):
    """保存结果为 .npy"""
    os.makedirs(output_dir, exist_ok=True)
    np.save(os.path.join(output_dir, f'{prefix}_frequencies.npy'), result.frequencies)
    np.save(os.path.join(output_dir, f'{prefix}_{result.reduction}.npy'), result.values)
    np.save(os.path.join(output_dir, f'{prefix}_solved.npy'), result.solved)
    logger.info("Results saved to %s", output_dir)


def save_results_to_hdf5(file_path, result, attrs=None):
    """保存扫频结果 (包括失败频点) 为 HDF5"""
    with h5py.File(file_path, 'w') as f:
        f.create_dataset('frequencies', data=result.frequencies)
        f.create_dataset('values', data=result.values)
        f.create_dataset('solved', data=result.solved)
        failed = sorted(result.failures)
        f.create_dataset('failed_frequencies', data=np.array(failed, dtype=float))
        messages = f.create_dataset('failure_messages', shape=(len(failed),),
                                    dtype=h5py.string_dtype())
        if failed:
            messages[:] = [result.failures[k] for k in failed]
        f.attrs['reduction'] = result.reduction
        f.attrs['aborted'] = result.aborted
        for key, value in (attrs or {}).items():
            f.attrs[key] = value
    logger.info("Results saved to %s", file_path)


def load_results_from_hdf5(file_path):
    with h5py.File(file_path, 'r') as f:
        messages = [m.decode() if isinstance(m, bytes) else m for m in f['failure_messages'][()]]
        failures = dict(zip(f['failed_frequencies'][()].tolist(), messages))
        return SweepResult(
            frequencies=np.array(f['frequencies']),
            values=np.array(f['values']),
            solved=np.array(f['solved']),
            reduction=str(f.attrs['reduction']),
            failures=failures,
            aborted=bool(f.attrs['aborted']),
        )
