"""
Report structures fed by the query stages.
"""

from __future__ import annotations

from .register import Register, RegisterNode
from .tree import Node, Report

__all__ = ["Node", "Report", "Register", "RegisterNode"]
