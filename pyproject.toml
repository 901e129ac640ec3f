[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "snlds"
version = "0.1.0"
description = "NumPy building blocks for switching nonlinear dynamical systems: MLP and CNN networks, switching local evidence, Neural PCA layers and PCA reduction."
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = [
    "snlds",
    "switching dynamical systems",
    "local evidence",
    "neural pca",
    "householder",
    "batchnorm",
    "pca",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["snlds"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
