[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "pageview"
version = "0.1.0"
description = "Page model, plugin registry, threaded renderer with page cache, recolouring and marks for a document viewer"
requires-python = ">=3.10"
dependencies = []
keywords = ["document", "viewer", "render", "recolor", "plugins", "page-cache", "marks"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics :: Viewers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.setuptools.packages.find]
include = ["pageview*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
