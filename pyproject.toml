[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kubechaos"
version = "0.1.0"
description = "Chaos testing for Kubernetes clusters: deletes randomly chosen pods at random intervals."
requires-python = ">=3.10"
dependencies = []
keywords = ["kubernetes", "chaos", "chaos-engineering", "resilience", "pods"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Clustering",
    "Topic :: Software Development :: Testing",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
kubechaos = "kubechaos.app:main"

[tool.hatch.build.targets.wheel]
packages = ["kubechaos"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
