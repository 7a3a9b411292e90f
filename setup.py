from setuptools import find_packages, setup

setup(
    name="hookwire",
    version="0.1.0",
    description="Thread-safe in-process hook registry with ordered, suspendable callbacks",
    packages=find_packages(include=["hookwire", "hookwire.*"]),
    include_package_data=True,
    python_requires=">=3.10",
    install_requires=[
        "pydantic>=2",
        "PyYAML>=6",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
)
