"""Time-and-pay accounting engine.

The package is organized by feature modules (attendance, leave, overtime,
payroll, ...) with a thin Flask controller layer on top of service and
repository layers. Services are framework-free and receive the acting user
explicitly.
"""
