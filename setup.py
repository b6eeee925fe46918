# setup.py
from setuptools import setup, find_packages

setup(
    name="tree_graphs",
    version="0.1.0",
    description="Collapsible force-directed tree graphs: ingestion, disclosure, layout and hit-testing",
    packages=find_packages(
        exclude=(
            "tests",
            "tests.*",
            "docs",
            "build",
            "dist",
        )
    ),
    python_requires=">=3.10",
    install_requires=[
        "numpy",
        "networkx",
        "pandas",
        "matplotlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "tree-graphs=tree_graphs.cli:main",
        ],
    },
)
