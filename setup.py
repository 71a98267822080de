# setup.py
from setuptools import setup, find_packages

setup(
    name="tube_fem",
    version="1.0.0",
    description="A Python-based 1D Acoustic FEM Solver for Piston-Driven Waveguides",
    packages=find_packages(include=["tube_fem", "tube_fem.*"]),
    install_requires=[
        "numpy>=1.21.0",
        "scipy>=1.12.0",
        "matplotlib",
        "tqdm",
        "h5py",
    ],
    extras_require={
        "test": ["pytest"],
    },
    python_requires=">=3.9",
)
