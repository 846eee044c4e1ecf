"""Setup script for mapscache."""

from setuptools import setup, find_namespace_packages

setup(
    name="mapscache",
    version="1.0.0",
    description="Response cache and daily budget guard for maps provider API calls",
    python_requires=">=3.11",
    packages=find_namespace_packages(include=["mapscache", "mapscache.*"]),
    install_requires=[
        "fastapi>=0.110",
        "uvicorn>=0.29",
        "pydantic>=2.6",
        "pydantic-settings>=2.2",
        "python-dotenv>=1.0",
        "anyio>=4.3",
        "asyncer>=0.0.7",
        "httpx>=0.27",
    ],
    extras_require={
        "test": [
            "pytest>=8.0",
        ],
    },
)
