import numpy as np

# 介质物理常数 (空气)
PHYSICS_PARAMS = {
    'rho0': 1.2,            # 空气密度 (kg/m^3)
    'c0': 340.0,            # 声速 (m/s)
    'air_damp': 0.0,        # 空气阻尼系数
    'p_ref': 2e-5,          # 参考声压 (听阈, Pa)
}

# 网格配置
MESH_CONFIG = {
    'L': 1.0,               # 管长 (m)
    'shape_type': 2,        # 1 - 线性形函数; 2 - 二次形函数
    'Ne_per_lamda_min': 6,  # 最小波长内的最少单元数
}

# 活塞声源: 位置 (0<=x<=L) 与质点位移幅值 (m)
SOURCE_CONFIG = {
    'piston_x': [0.0],
    'u_n': 1e-6,            # 标量, 或与频率序列等长的数组
}

# 边界: 位置 (0<=x<=L), 用吸声系数 (Mommertz 1996) 或复声阻抗描述
BOUNDARY_CONFIG = {
    'boundary_x': [1.0],
    'model_Z_by_alpha': False,
    'alpha': [0.3],                         # ]0,1[
    'Z': [PHYSICS_PARAMS['rho0'] * PHYSICS_PARAMS['c0'] * 10],  # Pa*s/m, np.inf 为刚性壁
}

# 扫频配置 (Hz)
SWEEP_CONFIG = {
    'f_min': 2.0,
    'f_max': 1000.0,
    'f_step': 2.0,
}

# 求解器配置
SOLVER_CONFIG = {
    'solver': 'direct',     # 'direct' (稀疏 LU) 或 'gmres'
    'reduction': 'level',   # 'level' (平均 RMS 声压级, dB) 或 'quadratic'
    'gmres_rtol': 1e-10,
    'gmres_restart': 50,
    'gmres_maxiter': 1000,
    'rcond_min': 1e-12,     # 缩放后系统矩阵的最小倒条件数, 低于此值视为奇异
}


def sweep_frequencies(sweep_config):
    """由 f_min / f_max / f_step 生成扫频序列 (包含 f_max), 或直接使用 'frequencies'"""
    if sweep_config.get('frequencies') is not None:
        return np.atleast_1d(np.asarray(sweep_config['frequencies'], dtype=float))
    f_min = sweep_config['f_min']
    f_max = sweep_config['f_max']
    f_step = sweep_config['f_step']
    if f_step <= 0:
        raise ValueError(f"f_step must be positive, got {f_step}")
    if f_min > f_max:
        raise ValueError(f"f_min ({f_min}) must not exceed f_max ({f_max})")
    n = int(np.floor((f_max - f_min) / f_step + 1e-9)) + 1
    return f_min + f_step * np.arange(n)
