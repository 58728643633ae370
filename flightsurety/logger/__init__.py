"""Loggers for oracle agents and the oracle server."""

from __future__ import annotations

from .oracleLogger import OracleLogger

__all__ = ["OracleLogger"]
