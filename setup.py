from setuptools import setup, find_packages


def get_readme(name="README.md"):
    with open(name) as f:
        return f.read()


requirements = [
    "redis>=4",
    "fastapi>=0.110",
    "uvicorn[standard]>=0.23",
    "hypercorn>=0.15",
]


setup(
    name="guestbook",
    version="1.0.0",
    description="HTTP front-end over Redis lists with a primary/replica split",
    long_description=get_readme(),
    long_description_content_type="text/markdown",
    packages=find_packages(exclude=["tests", "tests.*"]),
    entry_points={"console_scripts": ["guestbook=guestbook.app:main"]},
    install_requires=requirements,
    extras_require={
        "test": [
            "pytest",
            "httpx",
        ]
    },
    keywords="redis,guestbook,fastapi",
    classifiers=[
        "Programming Language :: Python :: 3",
        "Programming Language :: Python :: 3.8",
        "Programming Language :: Python :: 3.9",
        "Programming Language :: Python :: 3.10",
        "Programming Language :: Python :: 3.11",
        "Programming Language :: Python :: 3.12",
    ],
    python_requires=">=3.8",
)
