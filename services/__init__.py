"""
HTTP service clients.

    from services import STACClient
"""

from .stac_client import STACClient

__all__ = ['STACClient']
