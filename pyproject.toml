[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "multiparty"
version = "0.1.1"
description = "Session types for asynchronous communication between multiple parties, with state machine analysis and asynchronous subtyping."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "async",
    "deadlock",
    "safety",
    "session",
    "types",
    "fsm",
    "subtyping",
    "choreography",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["multiparty"]

[tool.hatch.build.targets.sdist]
include = [
    "multiparty",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"
