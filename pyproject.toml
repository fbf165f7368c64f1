[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "cometkit"
version = "0.1.0"
description = "Building blocks for long-lived connection servers: buffered I/O, buffer pools, a timer heap and a minimal server-side WebSocket."
requires-python = ">=3.10"
dependencies = [
    "psutil",
]
keywords = ["bufio", "websocket", "timer", "buffer pool", "comet", "push"]
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
    "Topic :: Software Development :: Libraries",
    "Topic :: Internet :: WWW/HTTP",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["cometkit"]

[tool.pytest.ini_options]
addopts = "-ra"
