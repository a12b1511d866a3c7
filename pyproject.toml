[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dmgemu"
version = "0.1.0"
description = "An emulator for the original monochrome handheld game console"
requires-python = ">=3.10"
keywords = ["emulator", "dmg", "sm83", "handheld", "console"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: End Users/Desktop",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: System :: Emulators",
    "Topic :: Games/Entertainment",
]
dependencies = ["pygame"]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
dmgemu = "dmgemu.dmg:main"

[tool.hatch.build.targets.wheel]
packages = ["dmgemu"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
