import os

from setuptools import find_packages, setup

# Modules to compile
# Only the graph traversal modules, which are pure Python and hot on large packages.
modules = [
    "schemagen/prune.py",
    "schemagen/graph.py",
]

# Compilation is opt-in so that 'pip install -e .' stays pure Python during dev.
ext_modules = []
if os.environ.get("SCHEMAGEN_COMPILE"):
    try:
        from mypyc.build import mypycify

        ext_modules = mypycify(modules)
    except (ImportError, RuntimeError):
        # Fallback to pure Python if mypyc is not present or fails
        ext_modules = []

setup(
    name="schemagen",
    version="0.3.0",
    description="JSON Schema definitions from Python record declarations",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "PyYAML>=6.0",
        "rich>=13.0",
    ],
    extras_require={
        "test": ["pytest>=7.0"],
    },
    entry_points={
        "console_scripts": [
            "schemagen=schemagen.cli.main:main",
        ],
    },
    ext_modules=ext_modules,
)
