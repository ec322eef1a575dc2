[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bedrock-raknet"
version = "0.1.0"
description = "RakNet offline message codecs with a minimal ping and MTU-handshake client and server for Minecraft Bedrock"
requires-python = ">=3.10"
dependencies = []
keywords = ["raknet", "minecraft", "bedrock", "udp", "protocol"]
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
    "Framework :: AsyncIO",
    "Topic :: System :: Networking",
    "Topic :: Games/Entertainment",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[project.scripts]
bedrock-raknet = "bedrock_raknet.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["bedrock_raknet"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
strict_optional = true
warn_unused_ignores = true
