from setuptools import setup, find_packages

setup(
    name='hostops',
    version='0.1.0',
    packages=find_packages(),
    include_package_data=True,
    install_requires=[
        'typer[all]',
        'rich',
        'pydantic>=2.0',
        'pyyaml',
        'python-dotenv',
        'tenacity>=7.0.0',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-cov',
        ],
    },
    entry_points={
        'console_scripts': [
            'hostops=hostops.cli:app'
        ]
    },
    description='Host fact gathering and idempotent service, package and container lifecycle operations over SSH',
    classifiers=[
        'Programming Language :: Python :: 3',
        'Operating System :: OS Independent',
    ],
    python_requires='>=3.8',
)
