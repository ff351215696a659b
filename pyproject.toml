[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "canarycheck"
version = "0.1.0"
description = "Topology component model, topology query building, Prometheus latency and uptime lookups, and a client for the topology HTTP API"
requires-python = ">=3.10"
dependencies = [
    "requests",
]
keywords = ["monitoring", "canary", "health-check", "topology", "prometheus"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = [
    "pytest",
    "responses",
]

[tool.hatch.build.targets.wheel]
packages = ["canarycheck"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
