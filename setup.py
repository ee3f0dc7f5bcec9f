"""
eventpace - 流水线事件节流与时间线回放
"""

from setuptools import setup, find_packages
from pathlib import Path

# Read the requirements
requirements_path = Path("eventpace") / "requirements.txt"
with open(requirements_path, encoding="utf-8") as f:
    requirements = [
        line.strip()
        for line in f
        if line.strip() and not line.startswith("#") and not line.startswith("-")
    ]

# Read README
readme_path = Path("eventpace") / "README.md"
long_description = ""
if readme_path.exists():
    with open(readme_path, encoding="utf-8") as f:
        long_description = f.read()

setup(
    name="eventpace",
    version="1.0.0",
    description="eventpace - 流水线事件节流与时间线回放",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="eventpace Team",
    packages=find_packages(where=".", include=["eventpace", "eventpace.*"]),
    package_data={"eventpace": ["requirements.txt", "README.md", "config/*.yaml"]},
    python_requires=">=3.10",
    install_requires=requirements,
    extras_require={
        "dev": [
            "pytest>=7.3.0",
            "pytest-cov>=4.0.0",
            "black>=23.0.0",
            "isort>=5.12.0",
            "flake8>=6.0.0",
            "mypy>=1.2.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "eventpace-replay=eventpace.scripts.replay_events:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: System :: Logging",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
