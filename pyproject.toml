[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sweb"
version = "0.1.1"
description = "A small asyncio HTTP framework with trie routing, functional middleware and generated OpenAPI docs"
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "web", "framework", "asyncio", "middleware", "router", "openapi", "swagger"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[project.scripts]
sweb-chain-demo = "sweb.chain_demo:main"
sweb-custom-response-demo = "sweb.custom_response_demo:main"

[tool.hatch.build.targets.wheel]
packages = ["sweb"]

[tool.hatch.build.targets.sdist]
include = ["sweb", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
