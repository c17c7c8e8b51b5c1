[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "snakearena"
version = "0.1.0"
description = "A multiplayer snake arena served over WebSockets, with a sample client that turns at random."
requires-python = ">=3.10"
dependencies = [
    "aiohttp",
]
keywords = ["snake", "game", "websocket", "multiplayer", "arena", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Arcade",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
    "aiohttp",
]

[project.scripts]
snakearena-server = "snakearena.server:main"
snakearena-client = "snakearena.client:main"

[tool.hatch.build.targets.wheel]
packages = ["snakearena"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
