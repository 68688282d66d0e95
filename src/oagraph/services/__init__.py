"""Whole-document passes built on the graph walker."""

from oagraph.services.consolidate import ReferenceConsolidator, consolidate
from oagraph.services.references import ReferenceChecker, check_references

__all__ = [
    "ReferenceChecker",
    "ReferenceConsolidator",
    "check_references",
    "consolidate",
]
