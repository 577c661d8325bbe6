[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "mmadapter"
version = "0.1.0"
description = "Model repository layout, configuration and runtime helpers for MLServer and OpenVINO Model Server adapters"
requires-python = ">=3.10"
dependencies = []
keywords = [
    "model-serving",
    "inference",
    "mlserver",
    "openvino",
    "ovms",
    "model-repository",
    "adapter",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["mmadapter"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
