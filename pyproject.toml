[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "monktower"
version = "0.1.10"
description = "Rules and board generation for a turn-based tower-climbing roguelike: entity data, an entity-component world, actions and events"
requires-python = ">=3.10"
dependencies = [
    "pyyaml",
]
keywords = ["roguelike", "game", "ecs", "turn-based", "procedural-generation", "bsp"]
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
    "Topic :: Games/Entertainment :: Role-Playing",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["monktower"]

[tool.hatch.build.targets.sdist]
include = [
    "monktower",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
