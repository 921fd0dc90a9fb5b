"""
Setup script for quizzo-core.

Quizzo core turns an uploaded document into a multiple-choice quiz and
grades learner attempts against it. It covers four stages:

1. Content extraction - PDF, HTML, JSON and plain text uploads
2. Generation - a single request to the Gemini generateContent endpoint
3. Parsing - validation of the free-form model answer into a quiz draft
4. Persistence and grading - atomic quiz writes, one attempt per learner

The 'quizzo' command exposes the pipeline from the terminal.
"""

from setuptools import find_packages, setup

setup(
    name="quizzo-core",
    version="1.0.0",
    description="Document-to-quiz generation and one-shot attempt grading",
    long_description=open("README.md", encoding="utf-8").read() if __import__("os").path.exists("README.md") else "",
    long_description_content_type="text/markdown",
    author="Quizzo",
    packages=find_packages(exclude=["tests", "tests.*"]),
    py_modules=["config"],
    python_requires=">=3.10",
    install_requires=[
        # CLI
        "typer>=0.9.0",
        "rich>=13.0.0",
        # Database
        "sqlalchemy>=2.0.10",
        "psycopg2-binary>=2.9.0",
        # Config & Validation
        "pydantic>=2.0.0",
        "pydantic-settings>=2.0.0",
        # HTTP
        "httpx>=0.25.0",
        # Logging
        "loguru>=0.7.0",
        # Content extraction
        "pymupdf>=1.23.0",
    ],
    extras_require={
        "dev": [
            "pytest>=7.0.0",
            "pytest-cov>=4.0.0",
            "ruff>=0.1.0",
            "mypy>=1.0.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "quizzo=quizzo.cli.main:run",
        ],
    },
    classifiers=[
        "Development Status :: 4 - Beta",
        "Environment :: Console",
        "Intended Audience :: Developers",
        "Intended Audience :: Education",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Topic :: Education",
    ],
    keywords="quiz generation gemini grading education",
)
