from setuptools import find_packages, setup

setup(
    name='sshpick',
    version='1.0.0',
    description='Browse the hosts of an SSH config file and connect to one from the terminal',
    packages=find_packages(include=['sshpick', 'sshpick.*']),
    python_requires='>=3.8',
    install_requires=[
        'textual>=0.48',
        'rich>=13',
    ],
    extras_require={
        'test': ['pytest>=7'],
    },
    entry_points={
        'console_scripts': [
            'sshpick=sshpick.main:main',
        ],
    },
)
