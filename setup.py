from setuptools import setup, find_packages

setup(
    name='minipack',
    version='0.1.0',
    py_modules=['minipack', 'packer'],
    packages=find_packages(exclude=['tests', 'tests.*']),
    package_data={
        'bundler.runtime': ['*.js'],
    },
    install_requires=[
        'lark>=1.2',
        'pydantic>=2.0',
    ],
    extras_require={
        'test': [
            'pytest',
            'requests',
        ],
    },
    entry_points={
        'console_scripts': [
            'minipack = minipack:main',
        ],
    },
)
