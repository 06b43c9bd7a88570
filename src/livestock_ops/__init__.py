"""Farm operations backend: workforce, attendance, payroll and livestock records."""

__version__ = "0.1.0"
