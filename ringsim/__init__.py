"""
Conservation-checked multi-physics simulation kernel

Independent domain solvers ("rings") advanced under a shared stepping
protocol that audits energy, momentum, mass and entropy across domains.
"""

__version__ = "0.1.0"
