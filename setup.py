from setuptools import setup, find_packages

setup(
    name="reservoirstats",
    version="0.1.0",
    description="Bounded-memory quantiles for unbounded numeric streams via a sorted sampling reservoir",
    packages=find_packages(include=["reservoirstats", "reservoirstats.*"]),
    install_requires=[
        "matplotlib",
        "pandas",
    ],
    extras_require={
        "test": ["pytest"],
    },
    include_package_data=True,
    python_requires=">=3.13",
)
