"""gakwaya - command-line client for the Gakwaya application panel."""

__version__ = "0.1.0"
