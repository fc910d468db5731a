#!/usr/bin/env python3
"""
Setup script for VelociView
"""

from pathlib import Path

from setuptools import setup, find_packages

readme = Path("README.md")
long_description = readme.read_text(encoding="utf-8") if readme.exists() else ""

with open("requirements.txt", "r", encoding="utf-8") as fh:
    requirements = [line.strip() for line in fh if line.strip() and not line.startswith("#")]

setup(
    name="velociview",
    version="1.0.0",
    author="VelociView",
    description="Overlay GPX/TCX activity stats and route maps onto photos",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(include=["velociview", "velociview.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: End Users/Desktop",
        "Topic :: Multimedia :: Graphics",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.9",
    install_requires=requirements,
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "velociview=velociview.cli:main",
        ],
    },
)
