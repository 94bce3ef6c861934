"""
Digistorm Connector - a small HTTPS gateway that runs database tasks
sent by the Digistorm API against a local MySQL or SQL Server database.
"""

__version__ = "1.0.0"
