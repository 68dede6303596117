# setup.py
from setuptools import setup, find_namespace_packages

setup(
    name="assetmanifest",
    version="0.1.0",
    description="Genera, fusiona y publica el manifiesto de assets de una zona de almacenamiento CDN",
    author="Enrique Paredes",
    author_email="eparedesbalen@gmail.com",
    package_dir={"": "src"},
    packages=find_namespace_packages(where="src", include=["assetmanifest*"]),
    python_requires=">=3.9",
    install_requires=[
        "requests",  # Bunny Storage y CDN API
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        'console_scripts': [
            'assetmanifest=assetmanifest.interface.cli.app:main',  # Publicación del manifiesto vía CLI
        ],
    },
    classifiers=[
        "Programming Language :: Python :: 3",
        "Operating System :: OS Independent",
    ],
)
