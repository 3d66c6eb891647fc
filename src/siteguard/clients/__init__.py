"""HTTP implementations of the directory and federated-group contracts."""

from .graph import GRAPH_BASE_URL, GraphGroupClient
from .sharepoint import SharePointDirectoryClient

__all__ = [
    "GRAPH_BASE_URL",
    "GraphGroupClient",
    "SharePointDirectoryClient",
]
