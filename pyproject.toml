[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "crashlog"
version = "0.1.0"
description = "Split Crash Log regions into records, decode record headers and build register trees"
requires-python = ">=3.10"
dependencies = []
keywords = ["crashlog", "firmware", "debug", "registers", "decoding"]
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
    "Topic :: System :: Hardware",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["crashlog"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
