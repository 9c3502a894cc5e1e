[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ia32kit"
version = "0.1.0"
description = "IA-32 instruction model, operand decoding helpers and assembly text formatting"
requires-python = ">=3.10"
dependencies = []
keywords = ["x86", "ia32", "disassembler", "instruction", "operand", "att", "intel"]
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
    "Topic :: Software Development :: Disassemblers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ia32kit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
