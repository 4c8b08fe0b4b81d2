from setuptools import setup, find_packages

setup(
    name="orchestr",
    version="0.1.0",
    package_dir={"": "src"},
    packages=find_packages("src", exclude=["tests", "tests.*"]),
    install_requires=[
        "pydantic>=2",
        "mirascope[openai]>=1.0,<2",
        "tenacity",
    ],
    extras_require={
        "test": [
            "pytest",
            "pytest-asyncio",
        ],
    },
    python_requires=">=3.9",
    description="graph-based orchestration of LLM agents with typed state, interrupts and checkpoints",
    long_description=open("README.md").read(),
    long_description_content_type="text/markdown",
)
