[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sak"
version = "0.1.0"
description = "Everyday helpers: file hashing, directory listing, config paths, safe unzipping, cookie files and resumable HTTP downloads."
requires-python = ">=3.10"
keywords = ["utilities", "download", "http", "unzip", "filesystem", "sha256", "cookies"]
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
    "Topic :: Software Development :: Libraries :: Python Modules",
    "Topic :: Utilities",
]
dependencies = [
    "requests>=2.28",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
]

[tool.hatch.build.targets.wheel]
packages = ["sak"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
