"""
Harvesters: turn a rendered list into ordered, deduplicated identifiers.
"""

from src.harvest.session import HarvestSession
from src.harvest.list_harvester import ListHarvester
from src.harvest.table_harvester import (
    TableHarvester,
    TableHarvestSettings,
    TableRow,
    row_index,
    tab_separated,
)

__all__ = [
    "HarvestSession",
    "ListHarvester",
    "TableHarvester",
    "TableHarvestSettings",
    "TableRow",
    "row_index",
    "tab_separated",
]
