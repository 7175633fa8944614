from setuptools import setup, find_packages

setup(
    name="mbox-builder",
    version="0.3.0",
    description="Build, upload and manage ModbusBox firmware over a serial port.",
    packages=find_packages(exclude=["tests", "tests.*"]),
    python_requires=">=3.9",
    install_requires=[
        "esptool>=4.8.1",
        "platformio>=6.1",
        "pyserial>=3.5", # serial.tools.list_ports is part of pyserial
        "rich>=13.0",
    ],
    extras_require={
        "test": [
            "pytest>=7.0",
            "pytest-asyncio>=0.21",
        ],
    },
    entry_points={
        "console_scripts": [
            "mbox=mbox_builder.cli:main",
        ],
    },
    include_package_data=True,
)
