[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minecrevy"
version = "0.2.0"
description = "Minecraft protocol data types, packet framing, text components and a server-list advertising server"
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["minecraft", "protocol", "varint", "server-list", "packets", "networking", "asyncio"]
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
    "Topic :: Games/Entertainment",
    "Topic :: Internet",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
minecrevy-server-list = "minecrevy.app:main"

[tool.hatch.build.targets.wheel]
packages = ["minecrevy"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
