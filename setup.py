"""Setup script for Bucketing."""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="bucketing",
    version="1.0.0",
    author="Erick Gross",
    author_email="erickgross1924@gmail.com",
    description="Deterministic experiment bucketing and parameter-space inspection for compiled experiment scripts",
    long_description=long_description,
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Topic :: Scientific/Engineering :: Information Analysis",
    ],
    python_requires=">=3.8",
    install_requires=[
        "numpy>=1.20.0",
    ],
    extras_require={
        "dev": ["pytest>=7.0.0", "pytest-cov>=4.0.0", "scipy>=1.7.0"],
        "test": ["pytest>=7.0.0", "scipy>=1.7.0"],
        "all": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "scipy>=1.7.0",
        ],
    },
)
