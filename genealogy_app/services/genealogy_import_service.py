"""
Genealogy import service for both CLI and web interface
"""

from dataclasses import asdict, dataclass, field

from genealogy_app.services.exceptions import (
    ParseError,
    UnsupportedFormatError,
    handle_service_exceptions,
)
from genealogy_app.shared import format_detector
from genealogy_app.shared.gedcom_parser import GEDCOMParser
from genealogy_app.shared.geneweb_parser import GeneWebParser
from genealogy_app.shared.graph_converter import convert_to_graph
from genealogy_app.shared.logging_config import get_project_logger
from genealogy_app.shared.models import (
    GenealogyData,
    GraphEdge,
    GraphNode,
    ImportOptions,
    ImportPreview,
    ImportResult,
)
from genealogy_app.shared.tree_layout import apply_layout, calculate_bounding_box, offset_positions


logger = get_project_logger(__name__)

# Bytes decoded when sniffing the format of binary content
SNIFF_BYTES = 4096


@dataclass
class GenealogyImport:
    """Graph records ready for the graph store, with the import summary"""
    nodes: list[GraphNode] = field(default_factory=list)
    edges: list[GraphEdge] = field(default_factory=list)
    result: ImportResult = field(default_factory=lambda: ImportResult(0, 0))

    def to_dict(self) -> dict:
        return {
            'nodes': [node.to_dict() for node in self.nodes],
            'edges': [edge.to_dict() for edge in self.edges],
            'result': asdict(self.result),
        }


class GenealogyImportService:
    """Detect, parse, convert and lay out genealogy files"""

    def _sniff_text(self, content: bytes | str) -> str:
        if isinstance(content, str):
            return content
        return content[:SNIFF_BYTES].decode('utf-8', errors='replace')

    @handle_service_exceptions(logger)
    def detect_format(self, content: bytes | str, file_name: str = "") -> str:
        """Detect GEDCOM or GeneWeb from content first, then from the file name"""
        detected = format_detector.detect_by_content(self._sniff_text(content)) or \
            format_detector.detect_by_name(file_name)
        if detected is None:
            raise UnsupportedFormatError(f"Unsupported genealogy file format: {file_name or 'unnamed file'}")
        return detected

    @handle_service_exceptions(logger)
    def parse_genealogy_file(self, content: bytes | str, file_name: str = "") -> GenealogyData:
        """Parse a GEDCOM or GeneWeb file into the shared genealogy model"""
        if not content or not self._sniff_text(content).strip():
            raise ParseError(f"File is empty: {file_name or 'unnamed file'}")

        detected = self.detect_format(content, file_name)
        if detected == format_detector.GEDCOM:
            return GEDCOMParser().parse(content, file_name)
        return GeneWebParser().parse(content, file_name)

    @handle_service_exceptions(logger)
    def import_genealogy_file(self, content: bytes | str, file_name: str = "",
                              options: ImportOptions | None = None) -> GenealogyImport:
        """Turn a genealogy file into positioned graph nodes and edges"""
        options = options or ImportOptions()
        logger.info(f"Starting genealogy import of {file_name or 'unnamed file'}")

        data = self.parse_genealogy_file(content, file_name)
        conversion = convert_to_graph(data, options)

        if options.auto_layout:
            apply_layout(conversion.nodes, conversion.edges, options.layout_direction)
            # Normalize so the whole set starts at the origin
            box = calculate_bounding_box(conversion.nodes)
            offset_positions(conversion.nodes, -box.min_x, -box.min_y)

        errors = []
        if not data.persons:
            errors.append("No individuals found in file")

        result = ImportResult(
            node_count=len(conversion.nodes),
            edge_count=len(conversion.edges),
            warnings=conversion.warnings,
            errors=errors,
        )
        logger.info(
            f"Imported {file_name or 'unnamed file'}: {result.node_count} nodes, "
            f"{result.edge_count} edges, {len(result.warnings)} warnings"
        )
        return GenealogyImport(nodes=conversion.nodes, edges=conversion.edges, result=result)

    @handle_service_exceptions(logger)
    def get_import_preview(self, content: bytes | str, file_name: str = "") -> ImportPreview:
        """Summary statistics shown before committing an import"""
        data = self.parse_genealogy_file(content, file_name)

        has_coordinates = any(
            place is not None and place.has_coordinates
            for person in data.persons
            for place in (person.birth_place, person.death_place,
                          *(residence.place for residence in person.residences))
        )

        years = [
            gdate.year
            for person in data.persons
            for gdate in (person.birth_date, person.death_date)
            if gdate is not None and gdate.year
        ]

        return ImportPreview(
            format=data.format,
            person_count=len(data.persons),
            family_count=len(data.families),
            has_coordinates=has_coordinates,
            earliest_year=min(years) if years else None,
            latest_year=max(years) if years else None,
        )

    def is_genealogy_file(self, file_name: str) -> bool:
        return format_detector.is_genealogy_file(file_name)


# Global service instance
genealogy_import_service = GenealogyImportService()
