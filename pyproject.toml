[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "droidscope"
version = "0.1.0"
description = "Device monitoring, process listing, performance sampling and APK manifest inspection for Android developers over adb"
requires-python = ">=3.10"
dependencies = []
keywords = ["android", "adb", "manifest", "performance", "monitoring"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Debuggers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["droidscope"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
