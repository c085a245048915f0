[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "homerobot"
version = "0.1.0"
description = "Control logic for a small two-wheeled home robot: wire protocol, PID motors, battery, IMU and LiDAR sensors."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "robot",
    "robotics",
    "pid",
    "lidar",
    "imu",
    "protocol",
    "embedded",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Embedded Systems",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["homerobot"]

[tool.hatch.build.targets.sdist]
include = ["homerobot", "tests", "README.md"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
