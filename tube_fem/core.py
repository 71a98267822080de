import logging

import numpy as np
from scipy import sparse
from scipy.sparse.linalg import LinearOperator, gmres, onenormest, spilu, splu
from scipy.sparse.linalg import norm as spnorm

from .analysis import mean_pressure_level
from .elements import element_matrices

logger = logging.getLogger(__name__)

SOLVERS = ('direct', 'gmres')
REDUCTIONS = ('level', 'quadratic')


class SolveError(RuntimeError):
    """单个频点求解失败 (不影响其他频点)"""


class SingularSystemError(SolveError):
    """系统矩阵奇异 (例如无阻尼共振)"""


class ConvergenceError(SolveError):
    """迭代求解器未收敛"""


def scatter_indices(elements):
    """
    COO 组装索引: 单元 e 的局部矩阵第 (a, b) 项散布到全局 (elements[e,a], elements[e,b])。
    """
    n = elements.shape[1]
    iIndex = np.repeat(elements, n, axis=1).flatten()
    jIndex = np.tile(elements, n).flatten()
    return iIndex, jIndex


def assemble_global(mesh, Ke, Me, iIndex=None, jIndex=None):
    """
    组装全局刚度矩阵 K 与质量矩阵 M (CSC)。
    共享节点的重复项在 COO -> CSC 转换时自动累加。
    """
    if iIndex is None or jIndex is None:
        iIndex, jIndex = scatter_indices(mesh.elements)

    Nn = mesh.n_nodes
    sK = np.tile(Ke.flatten(), mesh.n_elements)
    sM = np.tile(Me.flatten(), mesh.n_elements)

    K = sparse.coo_matrix((sK, (iIndex, jIndex)), shape=(Nn, Nn)).tocsc()
    M = sparse.coo_matrix((sM, (iIndex, jIndex)), shape=(Nn, Nn)).tocsc()
    return K, M


def boundary_matrix(n_nodes, boundary_nodes, admittances, rho0):
    """对角边界矩阵 A: A[n, n] = rho0 * beta, 其余为 0"""
    boundary_nodes = np.asarray(boundary_nodes, dtype=int)
    values = rho0 * np.asarray(admittances, dtype=complex)
    A = sparse.coo_matrix((values, (boundary_nodes, boundary_nodes)),
                          shape=(n_nodes, n_nodes), dtype=complex)
    return A.tocsc()


def _equilibrate(K_sys):
    """对称对角缩放 S = D K D, D = diag(1/sqrt|K_ii|)。返回 S 与 D 的对角元"""
    d = np.sqrt(np.abs(K_sys.diagonal()))
    d[d == 0] = 1.0
    D = sparse.diags(1.0 / d)
    return (D @ K_sys @ D).tocsc(), 1.0 / d


def reciprocal_condition(S, factor):
    """
    1-范数倒条件数估计 1 / (||S||_1 ||S^-1||_1), S^-1 由分解 factor 给出 (splu 或 spilu)。
    """
    def solve(x):
        return factor.solve(np.asarray(x, dtype=S.dtype))

    def solve_h(x):
        return factor.solve(np.asarray(x, dtype=S.dtype), trans='H')

    S_inv = LinearOperator(S.shape, matvec=solve, rmatvec=solve_h, dtype=S.dtype)
    return 1.0 / (spnorm(S, 1) * onenormest(S_inv))


def solve_system(K_sys, F, solver='direct', rtol=1e-10, restart=50, maxiter=1000,
                 rcond_min=1e-12):
    """
    求解 K_sys * P = F。矩阵在加入阻尼/阻抗项后一般非对称, 使用一般求解器。
    求解在对角缩放后的矩阵上进行; 倒条件数低于 rcond_min 视为奇异 (无阻尼共振)。

    Raises:
        SingularSystemError: 矩阵奇异, 近奇异或解非有限
        ConvergenceError: GMRES 未收敛
    """
    if solver not in SOLVERS:
        raise ValueError(f"solver must be one of {SOLVERS}, got {solver!r}")

    S, d = _equilibrate(sparse.csc_matrix(K_sys, dtype=complex))
    b = d * np.asarray(F)

    try:
        if solver == 'direct':
            factor = splu(S)
        else:
            factor = spilu(S, drop_tol=1e-6, fill_factor=20)
    except RuntimeError as e:
        raise SingularSystemError(f"LU factorization failed: {e}") from e

    rcond = reciprocal_condition(S, factor)
    if not np.isfinite(rcond) or rcond < rcond_min:
        raise SingularSystemError(
            f"system matrix is numerically singular (rcond={rcond:.2e} < {rcond_min:.0e})")

    if solver == 'direct':
        y = factor.solve(b.astype(S.dtype))
    else:
        M_pre = LinearOperator(S.shape, matvec=factor.solve, dtype=S.dtype)
        y, info = gmres(S, b, M=M_pre, rtol=rtol, restart=restart, maxiter=maxiter)
        if info > 0:
            raise ConvergenceError(f"GMRES did not converge after {info} iterations")
        if info < 0:
            raise SingularSystemError(f"GMRES breakdown (info={info})")

    P = d * y
    if not np.all(np.isfinite(P)):
        raise SingularSystemError("solution contains NaN or Inf")
    return P


class TubeFEMSolver:
    # 类级缓存, 存储与网格相关的静态数据
    # Key: (Ne, shape_type, h, c0)
    # Value: (Ke, Me, iIdx, jIdx)
    _MESH_CACHE = {}

    def __init__(self, mesh, params, piston_nodes, boundary_nodes, admittances,
                 solver_config=None):
        self.mesh = mesh
        self.update_params(params)

        solver_config = solver_config or {}
        self.solver = solver_config.get('solver', 'direct')
        self.reduction = solver_config.get('reduction', 'level')
        self.gmres_options = {
            'rtol': solver_config.get('gmres_rtol', 1e-10),
            'restart': solver_config.get('gmres_restart', 50),
            'maxiter': solver_config.get('gmres_maxiter', 1000),
        }
        self.rcond_min = solver_config.get('rcond_min', 1e-12)
        if self.solver not in SOLVERS:
            raise ValueError(f"solver must be one of {SOLVERS}, got {self.solver!r}")
        if self.reduction not in REDUCTIONS:
            raise ValueError(f"reduction must be one of {REDUCTIONS}, got {self.reduction!r}")

        self.piston_nodes = np.atleast_1d(piston_nodes)
        self.boundary_nodes = np.atleast_1d(boundary_nodes)

        # K, M, A 对整个扫频只组装一次 (只读共享)
        Ke, Me, iIdx, jIdx = self.init_fem(mesh)
        self.K, self.M = assemble_global(mesh, Ke, Me, iIdx, jIdx)
        self.A = boundary_matrix(mesh.n_nodes, self.boundary_nodes, admittances, self.rho0)
        logger.info("Assembled global matrices: %d x %d, nnz(K)=%d",
                    mesh.n_nodes, mesh.n_nodes, self.K.nnz)

    def update_params(self, params):
        """更新介质参数"""
        self.rho0 = params['rho0']
        self.c0 = params['c0']
        self.air_damp = params.get('air_damp', 0.0)
        self.p_ref = params.get('p_ref', 2e-5)

    def init_fem(self, mesh):
        """
        单元矩阵与组装索引。增加了缓存机制。
        """
        cache_key = (mesh.n_elements, mesh.shape_type, mesh.h, self.c0)
        if cache_key in TubeFEMSolver._MESH_CACHE:
            return TubeFEMSolver._MESH_CACHE[cache_key]

        Ke, Me = element_matrices(mesh.shape_type, mesh.h, self.c0)
        iIndex, jIndex = scatter_indices(mesh.elements)

        result = (Ke, Me, iIndex, jIndex)
        TubeFEMSolver._MESH_CACHE[cache_key] = result
        return result

    def force_vector(self, omega, u_n):
        F = np.zeros(self.mesh.n_nodes, dtype=complex)
        F[self.piston_nodes] = omega**2 * self.rho0 * u_n
        return F

    def system_matrix(self, omega):
        return (self.K - omega**2 * self.M / (1 + 1j * self.air_damp)
                + 1j * omega * self.A)

    def solve(self, freq, u_n):
        """
        单频求解, 返回各节点复声压 P。

        Args:
            freq (float): 频率 Hz
            u_n (float): 活塞质点位移幅值 (m)
        """
        omega = 2 * np.pi * freq
        F = self.force_vector(omega, u_n)
        K_sys = self.system_matrix(omega)

        logger.debug("Solving %.2f Hz with %s solver", freq, self.solver)
        if self.solver == 'gmres':
            return solve_system(K_sys, F, solver='gmres', rcond_min=self.rcond_min,
                                **self.gmres_options)
        return solve_system(K_sys, F, solver='direct', rcond_min=self.rcond_min)

    def mean_level(self, P):
        """波导内平均 RMS 声压级 (dB re p_ref)"""
        return mean_pressure_level(P, self.p_ref)

    def quadratic_pressure(self, P):
        """空间平均二次声压 rho0 * c0^2 * Re(P^H M P) / (2L)"""
        energy = np.real(np.vdot(P, self.M @ P))
        return self.rho0 * self.c0**2 * energy / (2 * self.mesh.length)

    def reduce(self, P):
        if self.reduction == 'quadratic':
            return self.quadratic_pressure(P)
        return self.mean_level(P)

    def evaluate(self, freq, u_n):
        """单频求解并归约为标量"""
        return self.reduce(self.solve(freq, u_n))
