"""
vegadb - Fluent SQL query builder

A dialect-agnostic query builder and executor for SQLite, MySQL and PostgreSQL.
Chain calls to build statements, run them through DB-API drivers,
observe them through listener hooks.
"""

from setuptools import setup, find_packages
import os

# Read README for long description
def read_long_description():
    readme_path = os.path.join(os.path.dirname(__file__), 'README.md')
    if os.path.exists(readme_path):
        with open(readme_path, 'r', encoding='utf-8') as f:
            return f.read()
    return ""

# Define optional dependencies
extras_require = {
    # Standard library driver (no extra install needed)
    'sqlite': [],

    # Dialects requiring external drivers
    'mysql': [
        'mysql-connector-python>=8.0.0',
    ],
    'postgres': [
        'psycopg2-binary>=2.9.0',
    ],

    # Test dependencies
    'test': [
        'pytest>=7.0.0',
    ],

    # Development dependencies
    'dev': [
        'mypy>=0.950',
        'build>=0.7.0',
        'twine>=4.0.0',
    ],
}

# All drivers
extras_require['all'] = (
    extras_require['mysql'] +
    extras_require['postgres']
)

# Full development environment
extras_require['full'] = (
    extras_require['all'] +
    extras_require['test'] +
    extras_require['dev']
)

setup(
    name="vegadb",
    version="0.1.0",
    author="vegadb contributors",
    author_email="",
    description="Fluent SQL query builder - dialect-agnostic, parameterized, observable",
    long_description=read_long_description(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=['tests', 'tests.*']),
    classifiers=[
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Developers",
        "Topic :: Database",
        "Topic :: Database :: Front-Ends",
        "Topic :: Software Development :: Libraries :: Python Modules",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
        "Typing :: Typed",
    ],
    python_requires=">=3.10",

    # Core dependencies (SQLite works with the standard library only)
    install_requires=[],

    # Optional dependencies
    extras_require=extras_require,

    keywords="sql query-builder database sqlite mysql postgresql dbapi",
)
