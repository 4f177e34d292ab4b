from setuptools import setup, find_packages


def load_requirements(filename='requirements.txt'):
    with open(filename, 'r') as file:
        return file.read().splitlines()


setup(
    name='py-mixkey',
    version='0.1.0',
    description='Recovers the Blowfish key of Westwood MIX archives from the RSA-encrypted key source in their header.',
    long_description=open('README.md').read(),
    long_description_content_type='text/markdown',
    packages=find_packages(exclude=['tests', 'examples']),
    install_requires=load_requirements(),
    classifiers=[
        'Development Status :: 3 - Alpha',
        'Intended Audience :: Developers',
        'Topic :: Games/Entertainment',
        'Topic :: Security :: Cryptography',
        'Programming Language :: Python :: 3',
    ],
    python_requires='>=3.8',
)
