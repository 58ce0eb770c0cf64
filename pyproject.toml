[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "xfsjson"
version = "0.1.0"
description = "Convert MT Framework XFS files to and from JSON."
requires-python = ">=3.10"
dependencies = []
keywords = ["xfs", "mt-framework", "json", "binary", "converter"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: File Formats :: JSON",
    "Topic :: Utilities",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
xfsjson = "xfsjson.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["xfsjson"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
