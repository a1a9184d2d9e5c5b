"""Type definitions for landkit fields.

All fields and kernel scalars use DTYPE. Single precision keeps GPU kernels
fast; enthalpy-scale quantities (~1e8 J/m^3) still resolve temperature to
better than 1e-4 degC.
"""

import taichi as ti

# ti.f32: faster on GPU, ~7 significant digits
# ti.f64: more accurate, slower on GPU
DTYPE = ti.f32
