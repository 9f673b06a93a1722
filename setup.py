from setuptools import setup, find_packages
import pathlib

# Detect layout
use_src = pathlib.Path("src/fieldmap").exists()
pkg_args = {"package_dir": {"": "src"}, "packages": find_packages(where="src")} if use_src \
           else {"packages": find_packages(where=".")}

setup(
    name="field-map",
    version="0.1.0",
    description="Declarative field-by-field mapping between objects, including values embedded in JSON",
    python_requires=">=3.10",
    include_package_data=True,
    install_requires=[
        "pydantic>=2",
        "PyYAML",
        "jsonschema",
        "typer",
        "json5",
        "jsonpointer",
        "jsonpath-ng",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["fieldmap=fieldmap.cli:app"],
    },
    **pkg_args
)
