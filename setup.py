#!/usr/bin/env python3
import setuptools

setuptools.setup(
    name="cargo-group-imports",
    version="0.1.0",
    packages=["cargo_group_imports"],
    python_requires=">=3.11",
    install_requires=[
        "click",
        "tree-sitter>=0.23",
        "tree-sitter-rust>=0.23",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "cargo-group-imports = cargo_group_imports.cli:main",
        ],
    },
    author="",
    description="Group use and mod statements in Cargo workspace source files",
    license="MIT",
)
