# Infrastructure Adapters Package
from .anki_connect import AnkiConnectAdapter

__all__ = ["AnkiConnectAdapter"]
