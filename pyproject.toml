[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "quarkassets"
version = "0.1.0"
description = "Asset model, importers, asset registry and editor camera for a small 3D engine"
requires-python = ">=3.10"
keywords = ["3d", "assets", "gltf", "glb", "ktx", "ktx2", "material", "mesh", "camera"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: 3D Modeling",
]
dependencies = [
    "pyyaml",
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["quarkassets"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
ignore_missing_imports = true
