from setuptools import setup

setup(name='bamscript',
      version='0.1',
      description='Filter BAM alignments with JavaScript-style expressions',
      url='http://github.com/natepalmer/bamscript',
      author='Nathan Palmer',
      author_email='ndpalmer@ucsd.edu',
      license='MIT',
      packages=['bamscript'],
      python_requires='>=3.8',
      install_requires=[
          'numpy', 'ply', 'pysam', 'click', 'loguru'
      ],
      extras_require={
          'test': ['pytest'],
      },
      entry_points={
            'console_scripts': ['bamscript=bamscript.cli:main'],
      },
      zip_safe=False)
