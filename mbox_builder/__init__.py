"""
mbox_builder

Command-line front-end to build, upload and manage ModbusBox firmware.
"""
__version__ = "0.3.0"
__description__ = "Build, upload and manage ModbusBox firmware over a serial port."
