[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "aidatt"
version = "0.1.0"
description = "Helix track parameters, propagation Jacobians, surface intersections and material effects for charged-particle tracking"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = [
    "tracking",
    "helix",
    "track fitting",
    "particle physics",
    "jacobian",
    "multiple scattering",
    "energy loss",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["aidatt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
