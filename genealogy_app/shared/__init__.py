"""
Shared genealogy utilities for GEDCOM and GeneWeb import
"""

from .date_utils import GenealogyDateParser
from .gedcom_parser import GEDCOMParser
from .geneweb_parser import GeneWebParser
from .graph_converter import convert_to_graph
from .tree_layout import apply_layout, compute_layout


__all__ = [
    'GEDCOMParser', 'GeneWebParser', 'GenealogyDateParser',
    'convert_to_graph', 'apply_layout', 'compute_layout'
]
