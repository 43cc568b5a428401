[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nomadpack"
version = "0.0.1"
description = "Local cache of Nomad pack registries, pack directory loading and a terminal spinner"
requires-python = ">=3.10"
dependencies = []
keywords = ["nomad", "packs", "registry", "cache", "hcl", "spinner"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Software Distribution",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["nomadpack"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
