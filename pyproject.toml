[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "anchorscope"
version = "1.3.0"
description = "Hash-verified replacement of exact text anchors in files"
requires-python = ">=3.10"
dependencies = []
keywords = ["anchor", "edit", "scope", "hash", "xxh3", "text"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development",
    "Topic :: Text Processing :: Filters",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
anchorscope = "anchorscope.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["anchorscope"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
