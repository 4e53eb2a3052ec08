[build-system]
requires = ["hatchling>=1.18"]
build-backend = "hatchling.build"

[project]
name = "safepkt"
version = "0.2.1"
description = "Smart contract verification service: store uploaded sources, scaffold projects and run verification steps in Docker containers"
requires-python = ">=3.10"
keywords = ["verification", "smart-contracts", "symbolic-execution", "fuzzing", "docker"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Intended Audience :: Developers",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: aiohttp",
    "Framework :: AsyncIO",
    "Topic :: Software Development :: Testing",
]
dependencies = [
    "aiohttp>=3.9",
    "python-dotenv>=1.0",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
    "pytest-asyncio>=0.21",
]

[project.scripts]
safepkt = "safepkt.cli:main"
safepkt-server = "safepkt.server:main"

[tool.hatch.build.targets.wheel]
packages = ["safepkt"]

[tool.hatch.build.targets.sdist]
include = ["safepkt", "tests", "pyproject.toml", "README.md"]

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
