"""The setup script."""

from setuptools import find_packages, setup

requirements = [
    "numpy>=1.22",
    "jax>=0.4.14",
    "jaxlib>=0.4.14",
    "tqdm>=4.45.0",
    "pydantic>=2.4",
    "typing_extensions>=4.6",
]

test_requirements = ["pytest", "pytest-sugar"]

with open("README.md") as infile:
    long_description = infile.read()

setup(
    name="lumen",
    version="0.1.0",
    description="Composable Jax layers with explicit parameters and state",
    long_description=long_description,
    long_description_content_type="text/markdown",
    author="Colin Sullivan",
    author_email="csulliva@brandeis.edu",
    packages=find_packages(where="src", include=["lumen", "lumen.*"]),
    package_dir={"": "src"},
    package_data={"lumen": ["py.typed"]},
    include_package_data=True,
    install_requires=requirements,
    extras_require={"test": test_requirements},
    python_requires=">=3.9",
    zip_safe=False,
    classifiers=[
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Developers",
        "Natural Language :: English",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
    ],
)
