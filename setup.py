#encoding="utf-8"
import setuptools

with open("README.md", "r", encoding="utf-8") as fh:
    long_description = fh.read()

setuptools.setup(
    name="PyDbcParser",
    version="0.1.0",
    author="Sgnes",
    author_email="sgnes0514@gmai.com",
    description="Parse CAN database (DBC) files into a network model",
    long_description=long_description,
    long_description_content_type="text/markdown",
    url="https://github.com/sgnes/Dbc-Parser",
    classifiers=[
        "Programming Language :: Python :: 3",
        "License :: OSI Approved :: MIT License",
        "Operating System :: OS Independent",
    ],
    install_requires=[

      ],
    extras_require={
        'test': ['pytest'],
    },
    packages=[
        'dbcparser'
        ],
    package_dir={
        'dbcparser': 'src'
        },

    python_requires='>=3.9',
)
