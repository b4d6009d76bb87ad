[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "archsim"
version = "0.1.0"
description = "Trace-driven simulators for processor pipelines, branch predictors, caches, DRAM and cache conflict probing"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "simulator",
    "cache",
    "pipeline",
    "branch-prediction",
    "dram",
    "mersenne-twister",
    "computer-architecture",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Education",
    "Intended Audience :: Science/Research",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
archsim-pipe = "archsim.pipesim:main"
archsim-mem = "archsim.memsim:main"
archsim-probe = "archsim.probe:main"
archsim-genmrt = "archsim.tracegen:main"

[tool.setuptools]
packages = ["archsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
