"""Setup script for agentdeck"""

from setuptools import setup, find_packages

setup(
    name="agentdeck",
    version="1.0.0",
    packages=find_packages(exclude=["tests", "tests.*"]),
    install_requires=[
        "pyyaml>=6.0",
        "watchdog>=2.1.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    python_requires=">=3.8",
    author="agentdeck contributors",
    description="Track, launch and monitor AI coding agents running in tmux",
    entry_points={
        "console_scripts": [
            "agentdeck=agentdeck.main:main",
        ],
    },
)
