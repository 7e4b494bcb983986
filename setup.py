"""
Setuptools build script for baish.

This file allows installation of the ``baish`` package via
``pip install .``.  It declares the required dependencies and
registers a console script entry point named ``b``.  When installed,
users can invoke the CLI with ``b`` from their shell.

The optional ``test`` extra pulls in pytest for the test suite.
"""

from setuptools import setup, find_packages

setup(
    name="baish",
    version="0.1.0",
    description="Turn natural language into a single shell command with a hosted LLM, then review and run it",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.8",
    install_requires=[
        "click>=8.0",
        "PyYAML>=5.4",
        "httpx>=0.24",
        "fastapi>=0.80",
        "uvicorn>=0.20",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "b=baish.cli:main",
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
)
