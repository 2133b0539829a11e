from setuptools import setup

setup(
    name='atmfjstc-pac-extractor',
    version='1.1.0',

    author_email='atmfjstc@protonmail.com',

    package_dir={'': 'src'},
    packages=['atmfjstc.lib.pac_extractor'],

    install_requires=[
        'atmfjstc-binary-utils>=1.2.0, <2',
        'atmfjstc-file-utils>=1.1, <3',
        'atmfjstc-error-utils>=1.1, <2',
        'atmfjstc-cli-utils>=1.8.0, <2',
    ],

    extras_require={
        'test': [
            'pytest>=6',
        ],
    },

    entry_points={
        'console_scripts': [
            'pacextractor = atmfjstc.lib.pac_extractor.cli:main',
        ],
    },

    zip_safe=True,

    description="Decoder and partition extractor for PAC firmware containers",

    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
        "Environment :: Console",
        "Topic :: System :: Archiving",
        "Typing :: Typed",
    ],
    python_requires='>=3.7',
)
