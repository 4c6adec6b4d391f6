"""zkboo - MPC-in-the-head zero-knowledge proofs for 32-bit word circuits."""

__version__ = "0.1.0"
