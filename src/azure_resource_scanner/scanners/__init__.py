"""Service scanners, one per supported Azure resource type"""

from .cognitive import CognitiveScanner
from .cosmos import CosmosDBScanner
from .dataexplorer import DataExplorerScanner
from .mysql import MySQLFlexibleScanner
from .redis import RedisScanner
from .signalr import SignalRScanner

__all__ = [
    "CognitiveScanner",
    "CosmosDBScanner",
    "DataExplorerScanner",
    "MySQLFlexibleScanner",
    "RedisScanner",
    "SignalRScanner",
]
