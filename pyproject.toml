[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "gunyu"
version = "0.1.0"
description = "Redis replication helpers: cluster topology parsing, topology discovery over a supplied client, an index of stored RDB/AOF segments, CRC-64 and small utilities."
requires-python = ">=3.10"
dependencies = []
keywords = ["redis", "replication", "cluster", "topology", "aof", "rdb", "crc64"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
gunyu-version = "gunyu.buildinfo:main"

[tool.hatch.build.targets.wheel]
packages = ["gunyu"]

[tool.hatch.build.targets.sdist]
include = ["gunyu", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"
