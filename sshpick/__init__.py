"""Browse the hosts of an SSH client config and connect to one."""

__version__ = "1.0.0"
