#!/usr/bin/env python3

from setuptools import setup, find_packages

setup(
    name="cosmos-getting-started",
    version="1.0.0",
    description="Getting-started walkthrough for Azure Cosmos DB for NoSQL",
    packages=find_packages(where="src"),
    package_dir={"": "src"},
    python_requires=">=3.9",
    install_requires=[
        "azure-cosmos>=4.5.0",
        "aiohttp>=3.8.0",
        "pydantic>=2.4.0",
        "PyYAML>=6.0",
        "click>=8.0.0",
        "rich>=10.0.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "cosmos-getting-started=cosmos_getting_started.cmd:main",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
)
