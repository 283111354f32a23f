from setuptools import setup, find_packages

setup(
    name="kerase",
    version="0.1.0",
    description="KErase — word and sentence backspace for X11 desktops",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.10",
    install_requires=[
        "python-xlib",
    ],
    extras_require={
        "test": ["pytest"],
    },
    entry_points={
        "console_scripts": [
            "kerase=kerase.main:main",
        ],
    },
)
