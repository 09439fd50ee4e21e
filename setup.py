from setuptools import setup


setup(
    name="reward-doctor",
    version="0.1.0",
    description="Rebuild clean (timestamp, amount) reward rows from noisy mining/reward spreadsheet exports",
    packages=["reward_doctor"],
    python_requires=">=3.9",
    install_requires=[
        "pandas",
        "chardet",
        "openpyxl",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "ods": ["odfpy"],
        "all": ["xlrd", "odfpy"],
    },
    entry_points={
        "console_scripts": [
            "reward-doctor=reward_doctor.cli:main",
        ]
    },
)
