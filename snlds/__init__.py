"""NumPy layers for switching nonlinear dynamical systems: MLP and CNN networks, switching local evidence, Neural PCA blocks and PCA reduction."""

__version__ = "0.1.0"