from setuptools import setup, find_packages

with open("README.md", "r", encoding="utf-8") as f:
    readme = f.read()

setup(
    name="pyroutextract",
    license="GPL v3",
    version="0.1.0",
    description="Extraction of routing graphs from OpenStreetMap data",
    long_description=readme,
    long_description_content_type="text/markdown",
    author="Mikolaj Kuranowski",
    url="https://github.com/MKuranowski/pyroutextract",
    keywords="osm routing graph extraction turn-restrictions",
    classifiers=[
        "Development Status :: 3 - Alpha",
        "License :: OSI Approved :: GNU General Public License v3 or later (GPLv3+)",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3 :: Only",
        "Topic :: Scientific/Engineering :: GIS",
        "Topic :: Software Development :: Libraries :: Python Modules",
    ],
    packages=find_packages(include=["pyroutextract", "pyroutextract.*"]),
    python_requires=">=3.8, <4",
    install_requires=["filelock", "typing_extensions"],
    extras_require={"docs": ["sphinx", "furo"]},
    data_files=["README.md"],
)
