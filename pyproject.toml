[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "spotlight"
version = "0.1.0"
description = "Syringe pump dispensing and stimulus geometry for closed-loop behavioural experiments"
requires-python = ">=3.10"
dependencies = [
    "pyserial",
]
keywords = [
    "syringe pump",
    "serial",
    "stimulus",
    "behaviour",
    "experiment control",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Science/Research",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Human Machine Interfaces",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["spotlight"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
