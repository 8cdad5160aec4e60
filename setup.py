"""
Setup script for the Taskory service and CLI.
"""
from setuptools import setup, find_packages

setup(
    name="taskory",
    version="0.1.0",
    packages=find_packages(exclude=["tests", "tests.*", "alembic", "alembic.*"]),
    install_requires=[
        "fastapi>=0.110.0",
        "pydantic>=2.5.0",
        "pydantic-settings>=2.1.0",
        "python-multipart>=0.0.9",
        "uvicorn>=0.27.0",
        "click>=8.1.0",
        "httpx>=0.25.0",
        "alembic>=1.13.0",
        "sqlalchemy>=2.0.0",
    ],
    extras_require={
        "postgresql": ["psycopg2-binary>=2.9.0"],
        "test": ["pytest>=7.4.0"],
    },
    entry_points={
        "console_scripts": [
            "taskory=taskory.__main__:main",
            "taskory-client=taskory.cli:cli",
        ],
    },
    python_requires=">=3.11",
)
