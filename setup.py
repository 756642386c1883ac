"""Setup file for trapi-merge package."""
from setuptools import setup

with open("README.md", encoding="utf-8") as readme_file:
    readme = readme_file.read()

setup(
    name="trapi-merge",
    version="1.0.0",
    description="Merge and score TRAPI messages from multiple knowledge providers",
    long_description_content_type="text/markdown",
    long_description=readme,
    packages=["trapi_merge"],
    include_package_data=True,
    zip_safe=False,
    license="MIT",
    python_requires=">=3.9",
    install_requires=[
        "pydantic>=2.0",
        "pydantic-settings>=2.0",
        "numpy",
        "pyyaml",
    ],
    extras_require={
        "test": [
            "pytest",
        ],
    },
)
