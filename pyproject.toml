[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "idkdb"
version = "0.1.0"
description = "Storage engine core: pages, disk manager, buffer pool, versioned map and a B+ tree index"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "storage-engine", "buffer-pool", "b-plus-tree", "pages", "transactions"]
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
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["idkdb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
