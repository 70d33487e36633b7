"""Control Zen Browser from Python through its native messaging host."""

__version__ = "0.1.0"