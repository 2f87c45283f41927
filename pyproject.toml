[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "killstalker"
version = "0.1.0"
description = "Follow a game log file and keep a feed and statistics of kills, deaths and incapacitations"
requires-python = ">=3.11"
dependencies = []
keywords = ["game", "log", "monitor", "kills", "statistics", "feed"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment",
    "Topic :: Internet :: Log Analysis",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
killstalker = "killstalker.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["killstalker"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py311"
