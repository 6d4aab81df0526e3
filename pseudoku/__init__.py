"""Pseudoku: prove you solved the Sudoku without revealing the solution."""

__version__ = "1.0.0"
