"""Infeasibility diagnosis helpers."""

from .iis import Conflict, ConflictMember, deletion_filter

__all__ = ["Conflict", "ConflictMember", "deletion_filter"]
