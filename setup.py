import setuptools

with open("audiokiosk/.version") as f:
    version = f.read().strip()

setuptools.setup(
    name="audiokiosk",
    version=version,
    python_requires=">=3.11.0",
    license="Apache-2.0",
    entry_points={"console_scripts": ["audiokiosk = audiokiosk.__main__:main"]},
    packages=["audiokiosk"],
    package_data={"audiokiosk": ["*.sql", ".version"]},
    install_requires=[
        "appdirs",
        "click",
        "mutagen",
    ],
    extras_require={
        "test": ["pytest"],
    },
)
