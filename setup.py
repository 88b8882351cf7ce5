from setuptools import setup
from setuptools import find_packages

config = {
    'name' : 'rbdtree',
    'version' : '0.1.0',
    'description' : 'Rigid body dynamics on kinematic trees: CRBA, RNEA and sparse forward dynamics',
    'install_requires' : [
        'numpy',
        'scipy',
        'prettytable',
        'urdf_parser_py'
    ],
    'extras_require' : {
        'test' : ['pytest'],
    },
    'python_requires' : '>=3.10',
    'package_dir' : {'' : 'src'},
    'packages' : find_packages('src'),
}

setup(**config)
