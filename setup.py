import setuptools

setuptools.setup(
    name = 'splinecurve',
    version = '1.0',
    description = 'spline curves parametrized by arc length',
    packages = setuptools.find_packages(exclude=['tests', 'tests.*']),
    python_requires = '>=3.8',
    install_requires=['numpy', 'scipy>=1.9'],
    extras_require={'test': ['pytest']},
)
