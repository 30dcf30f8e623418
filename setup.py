from setuptools import setup, find_packages

setup(
    name='k8s-bake',
    version='0.1.0',
    package_dir={'': 'src'},
    packages=find_packages('src'),
    python_requires='>=3.10',
    install_requires=[
        'requests',
        'PyYAML',
        'platformdirs',
        'packaging',
        'rich',
    ],
    extras_require={
        'test': [
            'pytest',
            'pytest-mock',
        ],
    },
    # Include other metadata as needed
)
