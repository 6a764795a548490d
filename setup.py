#!/usr/bin/env python
from setuptools import setup

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

with open("VERSION", "r", encoding="utf-8") as fh:
    version = fh.read().strip()

setup(name='eelsurrogate',
      version=version,
      author='Emmanuel Vazquez',
      author_email='emmanuel.vazquez@centralesupelec.fr',
      description='eelsurrogate: kriging surrogate estimates with data-parallel kernels',
      long_description=long_description,
      long_description_content_type="text/markdown",
      classifiers=[
          "Programming Language :: Python :: 3",
          "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
          "Operating System :: OS Independent",
      ],
      packages=['eelsurrogate', 'eelsurrogate.num', 'eelsurrogate.kernels',
                'eelsurrogate.core', 'eelsurrogate.misc'],
      license='LICENSE.txt',
      install_requires=[
             "numpy",
             "scipy>=1.8.0",
             "torch",
         ],
      extras_require={
             "test": ["pytest"],
         },
      python_requires=">=3.8",
      )
