[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "openpgpkit"
version = "0.1.0"
description = "OpenPGP packet building blocks: field encodings, algorithms, AEAD and CFB streams, compression, literal data and RSA session keys"
requires-python = ">=3.10"
dependencies = [
    "pycryptodome",
]
keywords = ["openpgp", "pgp", "cryptography", "aead", "rfc4880"]
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
    "Topic :: Security :: Cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["openpgpkit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
