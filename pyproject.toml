[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "animeupscale"
version = "0.1.0"
description = "Anime-style image upscaling with the Anime4K09 push filters, plus NumPy building blocks for an ACNet-style CNN."
requires-python = ">=3.10"
keywords = ["anime", "upscaling", "super-resolution", "image", "anime4k", "cnn"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Graphics Conversion",
    "Topic :: Scientific/Engineering :: Image Processing",
]
dependencies = [
    "numpy",
    "pillow",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["animeupscale"]

[tool.pytest.ini_options]
addopts = "-ra"
