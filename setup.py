from setuptools import setup, find_packages

with open('readme.md', 'r') as f:
    readme = f.read()

with open('license.txt', 'r') as f:
    license = f.read()

with open('requirements.txt', 'r') as f:
    requirements = f.read().splitlines()

setup(
    name='musig2',
    version='0.1.0',
    author='k98kurz@github',
    url='https://github.com/k98kurz/musig',
    description='Simple-to-use package implementing the MuSig2 two-round multi-sig protocol over Ed25519.',
    long_description=readme,
    long_description_content_type='text/markdown',
    license=license,
    packages=find_packages(exclude=('tests', 'docs', 'examples')),
    install_requires=requirements,
    python_requires='>=3.10',
    classifiers=[
        "Programming Language :: Python :: 3",
        "Development Status :: 2 - Pre-Alpha",
        "Topic :: Security :: Cryptography",
        "License :: OSI Approved :: ISC License (ISCL)",
    ],
)
