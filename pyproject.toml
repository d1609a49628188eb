[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "machina"
version = "0.1.0"
description = "A small hierarchical finite state machine library with guards, entry/exit hooks and substates."
requires-python = ">=3.10"
dependencies = []
keywords = ["state machine", "fsm", "hierarchical", "transitions", "guards"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["machina"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
