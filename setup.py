from setuptools import setup


setup(
    name="schedule-doctor",
    version="0.1.0",
    description="Local extraction of structured payment data from pharmacy payment schedule workbooks",
    packages=["schedule_doctor", "schedule_doctor.sections"],
    install_requires=[
        "pandas",
        "openpyxl",
        "streamlit",
        "requests",
    ],
    extras_require={
        "excel-legacy": ["xlrd"],
        "ods": ["odfpy"],
        "all": ["xlrd", "odfpy"],
    },
    entry_points={
        "console_scripts": [
            "schedule-doctor=schedule_doctor.cli:main",
        ]
    },
)
