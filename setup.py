"""The nihongodb setup.py script."""

from setuptools import setup, find_packages


setup(
    name='nihongodb',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    python_requires='>=3.8',
    install_requires=[
        'neo4j>=5.0',
        'pydantic>=2.0',
    ],
    extras_require={
        'test': [
            'pytest',
        ],
    },
    entry_points={
        'console_scripts': [
            'nihongodb=nihongodb.__main__:main',
        ],
    },
)
