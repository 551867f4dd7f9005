from setuptools import setup, find_packages

with open('requirements.txt') as f:
    required = f.read().splitlines()

setup(
    name = 'archfolio',
    version = '0.1.0',
    description = 'Configuration resolution engine for an architect portfolio site',
    packages = find_packages(exclude=['test', 'test.*']),
    install_requires = required,
    extras_require = {
        'test': ['pytest', 'pytest-cov'],
    },
    entry_points = {
        'console_scripts': ['archfolio=archfolio.cli:main'],
    },
    python_requires = '>=3.10',
)
