"""zkattest - authenticated identity attestations on EVM registries."""

__version__ = "0.1.0"
