[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "todoey"
version = "0.1.0"
description = "A small server-rendered todo-list web application with session login and task history"
requires-python = ">=3.10"
dependencies = [
    "flask",
]
keywords = ["todo", "tasks", "flask", "htmx", "sqlite", "web application"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: Dynamic Content",
    "Topic :: Office/Business :: Scheduling",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
todoey = "todoey.app:main"

[tool.hatch.build.targets.wheel]
packages = ["todoey"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
