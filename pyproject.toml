[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "zkit"
version = "0.1.0"
description = "Tree data nodes with path lookup, in-memory and on-disk file streams, filesystem helpers and a small tar packer"
requires-python = ">=3.10"
dependencies = []
keywords = ["tree", "nodes", "stream", "tar", "filesystem"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries",
    "Topic :: System :: Archiving",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["zkit"]

[tool.pytest.ini_options]
addopts = "-ra"
