from setuptools import setup, Extension
from Cython.Build import cythonize
import numpy

extensions = [
	Extension(
		"ngsdiseq.diseq_cy",
		["ngsdiseq/diseq_cy.pyx"],
		extra_compile_args=['-fopenmp', '-O3', '-g0', '-Wno-unreachable-code'],
		extra_link_args=['-fopenmp'],
		include_dirs=[numpy.get_include()],
		define_macros=[('NPY_NO_DEPRECATED_API', 'NPY_1_7_API_VERSION')]
	)
]

setup(
	name="ngsdiseq",
	version="0.2.1",
	description="Allele frequencies and disequilibrium coefficients from sequencing read counts using ECM",
	long_description_content_type="text/markdown",
	long_description=open("README.md").read(),
	classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: OS Independent",
        "Development Status :: 4 - Beta",
    ],
	ext_modules=cythonize(extensions),
	python_requires=">=3.10",
	install_requires=[
		"cython>3.0.0",
		"numpy>2.0.0",
		"scipy>1.14.0"
	],
	extras_require={
		"test": [
			"pytest>=7"
		]
	},
	packages=["ngsdiseq"],
	entry_points={
		"console_scripts": ["ngsdiseq=ngsdiseq.main:main"]
	},
)
