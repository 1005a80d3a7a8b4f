#!/usr/bin/env python
"""Setup script for the xjson core library."""
from pathlib import Path
from setuptools import setup, find_packages

# 프로젝트 루트 디렉토리
here = Path(__file__).parent.resolve()

# README 읽기
long_description = (here / "README.md").read_text(encoding="utf-8")

version = "0.1.0"

setup(
    name="xjson-core",
    version=version,
    author="YC Math",
    author_email="your-email@example.com",
    description="Lossless JSON round trip for bytes, datetimes, sets, maps and big integers",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    keywords="json serialization encoding round-trip",
    packages=find_packages(exclude=["tests", "tests.*", "docs", "examples"]),
    python_requires=">=3.9",

    # 기본 의존성
    install_requires=[
        "numpy>=1.21.0",
        "orjson>=3.8.0",
    ],

    # 선택적 의존성
    extras_require={
        "test": [
            "pytest>=7.0.0",
            "pytest-cov>=3.0.0",
            "hypothesis>=6.0.0",
        ],
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=3.0.0",
            "hypothesis>=6.0.0",
            "black>=22.0.0",
            "isort>=5.10.0",
            "flake8>=4.0.0",
            "mypy>=0.950",
        ],
    },

    package_data={
        "xjson_core": ["py.typed"],  # 타입 힌트 지원
    },
    include_package_data=True,
)
