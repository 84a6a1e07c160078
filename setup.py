import os
from setuptools import find_packages, setup

_CURRENT_DIR = os.path.dirname(os.path.abspath(__file__))

def get_version():
    with open(os.path.join(_CURRENT_DIR, "src", "jaxabl", "__init__.py")) as file:
        for line in file:
            if line.startswith("__version__"):
                return line[line.find("=") + 1:].strip(' \'"\n')

__version__ = get_version()

if __name__=='__main__':
    setup(
        name="jaxabl",
        version=__version__,
        description="Planar statistics of the atmospheric boundary layer for LES in JAX.",
        author="JAX-ABL developers",
        long_description=open(os.path.join(_CURRENT_DIR, "README.md")).read(),
        long_description_content_type='text/markdown',
        packages=find_packages(where="src"),
        package_dir={"": "src"},
        python_requires=">=3.10",
        install_requires=[
            "GitPython",
            "h5py",
            "jax",
            "jaxlib",
            "matplotlib",
            "numpy",
            "PyYAML",
        ],
        extras_require={
            # Use cuda to install CUDA version, use as follows:
            # $ pip install .[cuda] -f https://storage.googleapis.com/jax-releases/jax_cuda_releases.html
            "cuda": ["jaxlib"],
            "tests": ["pytest"],
        },
        license="GNU GPLv3",
        classifiers=[
            "Programming Language :: Python :: 3",
            "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
            "Operating System :: OS Independent",
        ]
    )
