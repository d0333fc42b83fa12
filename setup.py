from pathlib import Path  # isort: skip

from setuptools import find_packages  # isort: skip
from setuptools import setup  # isort: skip


HERE = Path(__file__).resolve().parent


def get_long_description():
    readme = HERE / "README.md"
    if not readme.exists():
        return ""
    return readme.read_text(encoding="utf-8")


setup(
    name="chaintrace",
    version="0.1.0",
    description="OpenTelemetry spans for LangChain runs",
    long_description=get_long_description(),
    long_description_content_type="text/markdown",
    license="Apache-2.0",
    packages=find_packages(exclude=["tests*"]),
    package_data={
        "chaintrace": ["py.typed"],
    },
    python_requires=">=3.9",
    zip_safe=False,
    install_requires=[
        "attrs>=20",
        "envier~=0.6",
        "langchain-core>=0.2",
        "opentelemetry-api>=1.20",
        "wrapt>=1.14,<2",
    ],
    extras_require={
        "test": [
            "mock",
            "opentelemetry-sdk>=1.20",
            "pytest",
            "riot",
        ],
    },
    classifiers=[
        "Programming Language :: Python",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
        "Programming Language :: Python :: 3.13",
    ],
)
