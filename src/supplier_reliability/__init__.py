"""
Supplier Reliability - performance tracking and blacklisting for dropshipping suppliers

Order outcomes and incidents become rolling metrics, a 0-100 reliability
score and a tier; suppliers that breach policy are blacklisted automatically
and drop out of the product catalog.
"""

__version__ = "0.1.0"

from supplier_reliability.tracker import SupplierTracker  # noqa: E402

__all__ = ["SupplierTracker", "__version__"]
