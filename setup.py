from setuptools import setup, find_packages


with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setup(
    name="flowprof",
    version="0.3.0",
    author="Andrey Golovanov",
    description="Dataflow profiling reports: topology validation, metric aggregation and layered layout.",
    long_description=long_description,
    long_description_content_type="text/markdown",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    packages=find_packages(exclude=("tests", "tests.*", "dev", "examples")),
    package_data={
        "flowprof": ["schemas/*.json", "templates/*.j2"],
    },
    python_requires=">=3.10",
    install_requires=[
        "networkx",
        "pyyaml",
        "jsonschema",
        "jinja2",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": ["flowprof=flowprof.cli:main"],
    },
)
