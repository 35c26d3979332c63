"""hostprep — prepare a Windows host to run GPU workloads inside WSL2."""

__version__ = "0.1.0"
