# -*- coding: utf-8 -*-
from setuptools import setup

from promissory import VERSION

install_requires = ['tornado>=6', 'twisted']

setup(name="promissory",
      version=VERSION,
      description="Promises/A+ promises with pluggable event loops and "
                  "blocking look-alike o-routines",
      packages=['promissory',
                'promissory.stack',
                'promissory.basic_stack',
                'promissory.asyncio_stack',
                'promissory.tornado_stack',
                'promissory.twisted_stack'],
      install_requires=install_requires,
      extras_require={'test': ['pytest']},
      python_requires='>=3.8',
      license='MIT'
      )
