import logging
from concurrent.futures import ProcessPoolExecutor
from dataclasses import dataclass, field

import numpy as np
from tqdm import tqdm

from .boundary import boundaries_from_config
from .core import REDUCTIONS, SOLVERS, SolveError, TubeFEMSolver
from .defaults import (BOUNDARY_CONFIG, MESH_CONFIG, PHYSICS_PARAMS, SOLVER_CONFIG,
                       SOURCE_CONFIG, SWEEP_CONFIG, sweep_frequencies)
from .mesh import check_shape_type, generate_mesh, nearest_nodes

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    """
    扫频结果。求解失败或未计算 (中止) 的频点 values 为 NaN, solved 为 False。
    """
    frequencies: np.ndarray
    values: np.ndarray
    solved: np.ndarray
    reduction: str
    failures: dict = field(default_factory=dict)
    aborted: bool = False

    @property
    def all_solved(self):
        return bool(np.all(self.solved)) and not self.failures and not self.aborted

    @property
    def failed_frequencies(self):
        return np.array(sorted(self.failures))


class TubeSimulator:
    """
    高层封装接口：合并配置、生成网格、组装矩阵并执行扫频。

    配置错误 (ValueError) 在生成网格之前抛出。
    """
    def __init__(self, physics_config=None, mesh_config=None, source_config=None,
                 boundary_config=None, sweep_config=None, solver_config=None):
        self.params = PHYSICS_PARAMS.copy()
        if physics_config:
            self.params.update(physics_config)

        self.mesh_config = MESH_CONFIG.copy()
        if mesh_config:
            self.mesh_config.update(mesh_config)

        self.source_config = SOURCE_CONFIG.copy()
        if source_config:
            self.source_config.update(source_config)

        self.boundary_config = BOUNDARY_CONFIG.copy()
        if boundary_config:
            self.boundary_config.update(boundary_config)

        self.sweep_config = SWEEP_CONFIG.copy()
        if sweep_config:
            self.sweep_config.update(sweep_config)

        self.solver_config = SOLVER_CONFIG.copy()
        if solver_config:
            self.solver_config.update(solver_config)

        self.frequencies = sweep_frequencies(self.sweep_config)
        self._validate()
        self.u_n = self._displacements()
        self._build()

    @property
    def config(self):
        """用于在子进程中重建仿真器的完整配置"""
        return {
            'physics_config': self.params,
            'mesh_config': self.mesh_config,
            'source_config': self.source_config,
            'boundary_config': self.boundary_config,
            'sweep_config': self.sweep_config,
            'solver_config': self.solver_config,
        }

    @property
    def Z0(self):
        return self.params['rho0'] * self.params['c0']

    def _validate(self):
        if self.params['rho0'] <= 0 or self.params['c0'] <= 0:
            raise ValueError("rho0 and c0 must be positive")
        if self.params.get('air_damp', 0.0) < 0:
            raise ValueError("air_damp must be non-negative")

        L = self.mesh_config['L']
        if L <= 0:
            raise ValueError(f"tube length L must be positive, got {L}")
        check_shape_type(self.mesh_config['shape_type'])
        if self.mesh_config['Ne_per_lamda_min'] <= 0:
            raise ValueError("Ne_per_lamda_min must be positive")

        if self.frequencies.size == 0:
            raise ValueError("frequency sweep is empty")
        if np.any(self.frequencies <= 0):
            raise ValueError("frequencies must be positive")
        if np.unique(self.frequencies).size != self.frequencies.size:
            raise ValueError("frequencies must not contain duplicates")

        for name, key, cfg in (('piston', 'piston_x', self.source_config),
                               ('boundary', 'boundary_x', self.boundary_config)):
            xs = np.atleast_1d(cfg[key])
            if xs.size == 0:
                raise ValueError(f"at least one {name} position is required")
            if np.any(xs < 0) or np.any(xs > L):
                raise ValueError(f"{name} positions must lie within [0, {L}], got {xs}")

        # 吸声系数 / 阻抗的合法性检查
        self.boundaries = boundaries_from_config(self.boundary_config)

        if self.solver_config['solver'] not in SOLVERS:
            raise ValueError(f"solver must be one of {SOLVERS}")
        if self.solver_config['reduction'] not in REDUCTIONS:
            raise ValueError(f"reduction must be one of {REDUCTIONS}")

    def _displacements(self):
        u_n = np.asarray(self.source_config['u_n'], dtype=float)
        if u_n.ndim == 0:
            return np.full(self.frequencies.shape, float(u_n))
        if u_n.shape != self.frequencies.shape:
            raise ValueError("u_n must be a scalar or give one value per frequency")
        return u_n

    def _build(self):
        lamda_min = self.params['c0'] / np.max(self.frequencies)
        self.mesh = generate_mesh(self.mesh_config['L'], lamda_min,
                                  shape_type=self.mesh_config['shape_type'],
                                  Ne_per_lamda_min=self.mesh_config['Ne_per_lamda_min'])

        self.piston_nodes = nearest_nodes(self.mesh.x, self.source_config['piston_x'])
        self.boundary_nodes = nearest_nodes(self.mesh.x, [b.x for b in self.boundaries])
        self.admittances = np.array([b.admittance(self.Z0) for b in self.boundaries])

        self.solver = TubeFEMSolver(self.mesh, self.params, self.piston_nodes,
                                    self.boundary_nodes, self.admittances,
                                    solver_config=self.solver_config)

    def solve_field(self, frequency, u_n=None):
        """单频节点复声压。u_n 缺省时按扫频序列插值。"""
        if u_n is None:
            u_n = np.interp(frequency, self.frequencies, self.u_n)
        return self.solver.solve(frequency, u_n)

    def predict(self, frequency, u_n=None):
        """
        标准接口：输入频率，返回归约后的标量 (dB 声压级或二次声压)

        Raises:
            SolveError: 该频点求解失败
        """
        return self.solver.reduce(self.solve_field(frequency, u_n))

    def run(self, workers=1, progress=False, abort=None):
        """
        执行扫频。单个频点失败时记录并继续。

        Args:
            workers (int): >1 时使用进程池并行计算各频点
            progress (bool): 显示 tqdm 进度条
            abort (callable): 每个频点之前调用, 返回 True 时中止扫频

        Returns:
            SweepResult
        """
        n = self.frequencies.size
        values = np.full(n, np.nan)
        solved = np.zeros(n, dtype=bool)
        failures = {}
        aborted = False

        logger.info("Starting sweep: %d frequencies (%.1f - %.1f Hz), %d worker(s)",
                    n, self.frequencies[0], self.frequencies[-1], workers)

        if workers > 1:
            outcomes = self._run_parallel(workers, progress, abort)
        else:
            outcomes = self._run_serial(progress, abort)

        for i, outcome in enumerate(outcomes):
            if outcome is None:
                aborted = True
                logger.warning("Sweep aborted after %d of %d frequencies", i, n)
                break
            value, error = outcome
            if error is None:
                values[i] = value
                solved[i] = True
            else:
                freq = float(self.frequencies[i])
                failures[freq] = error
                logger.warning("Solve failed at %.2f Hz: %s", freq, error)
        outcomes.close()

        if failures:
            logger.warning("%d of %d frequencies failed", len(failures), n)
        return SweepResult(frequencies=self.frequencies.copy(), values=values, solved=solved,
                           reduction=self.solver.reduction, failures=failures, aborted=aborted)

    def _run_serial(self, progress, abort):
        tasks = zip(self.frequencies, self.u_n)
        if progress:
            tasks = tqdm(tasks, total=self.frequencies.size, desc="Sweep")
        for freq, u in tasks:
            if abort is not None and abort():
                yield None
                return
            yield _evaluate(self, freq, u)

    def _run_parallel(self, workers, progress, abort):
        with ProcessPoolExecutor(max_workers=workers, initializer=init_worker,
                                 initargs=(self.config,)) as executor:
            futures = [executor.submit(solve_task, (f, u))
                       for f, u in zip(self.frequencies, self.u_n)]
            iterator = tqdm(futures, desc="Sweep") if progress else futures
            for future in iterator:
                if abort is not None and abort():
                    for pending in futures:
                        pending.cancel()
                    yield None
                    return
                yield future.result()


def _evaluate(simulator, freq, u):
    try:
        return simulator.solver.evaluate(freq, u), None
    except SolveError as e:
        return np.nan, str(e)


# --- 全局变量 (仅在 Worker 进程中有效) ---
_WORKER_SIM = None


def init_worker(config):
    """
    Worker 进程初始化函数。每个进程只运行一次, 组装一份只读的 K, M, A。
    """
    global _WORKER_SIM
    _WORKER_SIM = TubeSimulator(**config)


def solve_task(args):
    """单频点任务 (运行在 Worker 进程中), 返回 (value, error)"""
    freq, u = args
    return _evaluate(_WORKER_SIM, freq, u)
