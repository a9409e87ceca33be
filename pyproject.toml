[build-system]
requires = ["setuptools>=61"]
build-backend = "setuptools.build_meta"

[project]
name = "snush"
version = "0.1.0"
description = "A small interactive Unix shell with pipelines, redirection and background jobs"
requires-python = ">=3.10"
dependencies = []
keywords = ["shell", "job control", "pipeline", "redirection", "unix"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Shells",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
snush = "snush.shell:main"

[tool.setuptools.packages.find]
include = ["snush*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
