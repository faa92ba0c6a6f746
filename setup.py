from setuptools import setup

DESCRIPTION = 'Chunked, compressed, N-dimensional arrays in the v3 storage format.'

with open('README.md') as f:
    LONG_DESCRIPTION = f.read()

dependencies = [
    'asciitree',
    'numpy>=1.22',
    'fasteners',
    'numcodecs>=0.10',
    'crc32c',
    'zstandard',
    'fsspec>=2023.1.0',
    'donfig>=0.8',
    'requests',
    'typing_extensions',
]

setup(
    name='zarr3',
    version='0.1.0',
    description=DESCRIPTION,
    long_description=LONG_DESCRIPTION,
    long_description_content_type='text/markdown',
    extras_require={
        'test': [
            'pytest',
        ],
    },
    python_requires='>=3.10, <4',
    install_requires=dependencies,
    package_dir={'': '.'},
    packages=[
        'zarr3',
        'zarr3.abc',
        'zarr3.codecs',
        'zarr3.store',
        'zarr3.tests',
    ],
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Intended Audience :: Information Technology',
        'Intended Audience :: Science/Research',
        'License :: OSI Approved :: MIT License',
        'Programming Language :: Python',
        'Topic :: Software Development :: Libraries :: Python Modules',
        'Operating System :: Unix',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
    ],
    license='MIT',
)
