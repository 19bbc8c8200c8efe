"""
Setup configuration for the Task Grid package
"""

from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="task-grid",
    version="1.0.0",
    author="Your Name",
    author_email="your.email@example.com",
    description="A spreadsheet-style task table editing engine with rich paste and undo/redo",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/yourusername/task-grid",
    packages=find_packages(exclude=["tests", "tests.*"]),
    classifiers=[
        "Development Status :: 4 - Beta",
        "Intended Audience :: Developers",
        "Topic :: Software Development :: Libraries",
        "License :: OSI Approved :: MIT License",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.11",
    install_requires=[
        "langchain-anthropic>=0.1.0",
        "langchain-core>=0.1.0",
        "python-dotenv>=1.0",
        "openpyxl>=3.1",
        "beautifulsoup4>=4.12",
    ],
    extras_require={
        "openai": [
            "langchain-openai>=0.1.0",
        ],
        "dev": [
            "pytest>=7.0",
            "pytest-cov>=4.0",
            "black>=23.0",
            "flake8>=6.0",
            "mypy>=1.0",
        ],
    },
)
