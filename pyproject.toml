[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "climastation"
version = "0.1.0"
description = "Weather station logic: BMP280 and AHT20 sensor decoding, SSD1306 framebuffer, threshold alarms and a small monitoring web server."
requires-python = ">=3.10"
dependencies = []
keywords = [
    "weather-station",
    "bmp280",
    "aht20",
    "ssd1306",
    "i2c",
    "temperature",
    "humidity",
    "pressure",
    "monitoring",
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
    "Topic :: Scientific/Engineering :: Atmospheric Science",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["climastation"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
