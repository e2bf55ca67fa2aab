[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "onosconfig"
version = "0.1.0"
description = "gNMI path, value and tree utilities with in-memory versioned configuration, proposal and transaction stores"
requires-python = ">=3.10"
dependencies = []
keywords = ["gnmi", "yang", "network", "configuration", "openconfig"]
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
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["onosconfig"]

[tool.pytest.ini_options]
addopts = "-ra"
