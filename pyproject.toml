[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "haste"
version = "0.1.0"
description = "Building blocks for reading Source 2 game replays: var type parsing, fx hashing, quantized floats, string tables and the field-op Huffman tree"
requires-python = ">=3.10"
dependencies = []
keywords = ["replay", "demo", "source2", "dota2", "deadlock", "string-tables", "huffman"]
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
    "Topic :: Games/Entertainment",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
huffmanfieldpath = "haste.huffman:main"

[tool.hatch.build.targets.wheel]
packages = ["haste"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
