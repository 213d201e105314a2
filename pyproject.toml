[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "ormlkit"
version = "0.1.0"
description = "In-memory ledger building blocks: multi-currency routing, NFTs, oracles, reward pools and gradual value updates"
requires-python = ">=3.10"
dependencies = []
keywords = ["currency", "ledger", "nft", "oracle", "rewards", "shares"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Office/Business :: Financial",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["ormlkit"]

[tool.pytest.ini_options]
addopts = "-ra"
