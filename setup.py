# setup.py
from setuptools import setup, find_packages

setup(
    name="dynamodb-bootstrap",
    version="0.1.0",
    description="Throughput-bounded, partitioned DynamoDB table copy",
    package_dir={"": "src"},
    packages=find_packages("src"),
    python_requires=">=3.9",
    install_requires=[
        "boto3>=1.26",
        "botocore>=1.29",
        "tqdm>=4.60",
    ],
    extras_require={
        "test": ["pytest>=7"],
    },
    entry_points={
        "console_scripts": [
            "ddb-bootstrap=ddb_bootstrap.cli:main",
        ],
    },
)
