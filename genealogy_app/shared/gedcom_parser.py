"""
GEDCOM parser for reading GEDCOM 5.5.1 and 7.0 files into the shared genealogy model
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from .date_utils import GenealogyDateParser
from .extraction import Extraction
from .format_detector import detect_gedcom_version
from .logging_config import get_project_logger
from .models import (
    BETWEEN,
    FORMAT_GEDCOM_551,
    FORMAT_GEDCOM_70,
    GenealogyData,
    GenealogyDate,
    GenealogyFamily,
    GenealogyMetadata,
    GenealogyPerson,
    GenealogyPlace,
    GenealogyResidence,
)


logger = get_project_logger(__name__)

_LINE_PATTERN = re.compile(r'^\s*(\d+)\s+(?:(@[^@\s]+@)\s+)?(\S+)(?: (.*))?$')
_POINTER_PATTERN = re.compile(r'^@[^@\s]+@$')
_COORDINATE_PATTERN = re.compile(r'^([NSEW])?\s*([+-]?\d+(?:\.\d*)?)$', re.IGNORECASE)

VOID_POINTER = '@VOID@'


@dataclass
class GedcomNode:
    """One "level [xref] tag [value]" line with its nested sub-lines"""
    level: int
    tag: str
    value: str = ""
    xref: str | None = None
    raw_value: str = ""  # value exactly as written, for CONC folding
    children: list['GedcomNode'] = field(default_factory=list)

    def first(self, tag: str) -> 'GedcomNode | None':
        for child in self.children:
            if child.tag == tag:
                return child
        return None

    def all(self, tag: str) -> list['GedcomNode']:
        return [child for child in self.children if child.tag == tag]

    def text(self) -> str:
        """Value with CONT (new line) and CONC (concatenation) sub-lines folded in"""
        parts = [self.raw_value or self.value]
        for child in self.children:
            if child.tag == 'CONT':
                parts.append('\n' + (child.raw_value or child.value))
            elif child.tag == 'CONC':
                parts.append(child.raw_value or child.value)
        return ''.join(parts).strip()


class GEDCOMParser:
    """Parse GEDCOM files into GenealogyData"""

    def __init__(self):
        """Initialize parser"""
        self.warnings: list[str] = []
        self.note_records: dict[str, str] = {}

    def parse_file(self, file_path: str) -> GenealogyData:
        """Parse a GEDCOM file from disk"""
        path = Path(file_path)
        return self.parse(path.read_bytes(), path.name)

    def parse(self, content: bytes | str, file_name: str) -> GenealogyData:
        """Parse GEDCOM content (raw bytes or already decoded text)"""
        self.warnings = []
        self.note_records = {}

        lines = self.preprocess(content)
        records = self._build_tree(lines)

        header = next((record for record in records if record.tag == 'HEAD'), None)
        metadata = self._parse_header(header)
        version = detect_gedcom_version('\n'.join(lines)) or (
            FORMAT_GEDCOM_70 if (metadata.version or '').startswith('7') else FORMAT_GEDCOM_551
        )

        for record in records:
            if record.tag == 'NOTE' and record.xref:
                self.note_records[record.xref] = record.text()

        persons = []
        families = []
        for record in records:
            if record.tag == 'INDI':
                person = self._parse_individual(record)
                if person:
                    persons.append(person)
            elif record.tag == 'FAM':
                family = self._parse_family(record)
                if family:
                    families.append(family)

        self._check_references(persons, families)

        logger.info(
            f"Parsed {len(persons)} individuals and {len(families)} families "
            f"from {file_name} ({len(self.warnings)} warnings)"
        )

        return GenealogyData(
            format=version,
            file_name=file_name,
            persons=persons,
            families=families,
            metadata=metadata,
            warnings=list(self.warnings),
        )

    # ------------------------------------------------------------------
    # Preprocessing
    # ------------------------------------------------------------------

    def preprocess(self, content: bytes | str) -> list[str]:
        """
        Normalize raw content before the structural walk: decode, drop comment
        and blank lines, and restore the missing "0 " prefix some exporters
        leave off top-level pointer records.
        """
        if isinstance(content, bytes):
            try:
                text = content.decode('utf-8-sig')
            except UnicodeDecodeError:
                self.warnings.append("File is not valid UTF-8, decoded as Latin-1")
                text = content.decode('latin-1')
        else:
            text = content.lstrip('\ufeff')

        cleaned = []
        for line in text.splitlines():
            stripped = line.strip()
            if not stripped or stripped.startswith('#'):
                continue
            # Trailing spaces are kept, CONC lines are often split at a space
            if stripped.startswith('@'):
                cleaned.append('0 ' + line.lstrip())
            else:
                cleaned.append(line)
        return cleaned

    def _build_tree(self, lines: list[str]) -> list[GedcomNode]:
        """Group lines into top-level records by nesting level"""
        records: list[GedcomNode] = []
        stack: list[GedcomNode] = []

        for line_number, line in enumerate(lines, 1):
            match = _LINE_PATTERN.match(line)
            if not match:
                self.warnings.append(f"Line {line_number}: unparsable line skipped: {line[:60]}")
                continue

            level, xref, tag, value = match.groups()
            raw_value = value or ''
            node = GedcomNode(level=int(level), tag=tag.upper(), value=raw_value.strip(), xref=xref,
                              raw_value=raw_value)

            while stack and stack[-1].level >= node.level:
                stack.pop()

            if node.level == 0 or not stack:
                records.append(node)
            else:
                stack[-1].children.append(node)
            stack.append(node)

        return records

    # ------------------------------------------------------------------
    # Header
    # ------------------------------------------------------------------

    def _parse_header(self, header: GedcomNode | None) -> GenealogyMetadata:
        metadata = GenealogyMetadata()
        if header is None:
            self.warnings.append("File has no HEAD record")
            return metadata

        metadata.source = self._extract_text(header, 'SOUR').value
        metadata.language = self._extract_text(header, 'LANG').value
        metadata.encoding = self._extract_text(header, 'CHAR').value

        gedc = header.first('GEDC')
        if gedc is not None:
            metadata.version = self._extract_text(gedc, 'VERS').value
        return metadata

    # ------------------------------------------------------------------
    # Individuals
    # ------------------------------------------------------------------

    def _parse_individual(self, record: GedcomNode) -> GenealogyPerson | None:
        """Parse an INDI record; records without an identifier are dropped"""
        if not record.xref:
            self.warnings.append(f"Individual record without identifier dropped: {record.value[:40]}")
            logger.warning("Dropped INDI record without identifier")
            return None

        person_id = record.xref
        person = GenealogyPerson(id=person_id)

        name = record.first('NAME')
        if name is not None:
            full_name = name.value
            person.first_name = self.extract_first_name(full_name)
            person.last_name = self.extract_last_name(full_name)
            person.first_name = self._extract_text(name, 'GIVN').value_or(person.first_name)
            person.last_name = self._extract_text(name, 'SURN').value_or(person.last_name)
            person.nickname = self._extract_text(name, 'NICK').value

        if person.nickname is None:
            person.nickname = self._extract_text(record, 'NICK').value

        sex = self._extract_text(record, 'SEX')
        if sex.is_found:
            person.sex = sex.value.upper() if sex.value.upper() in ('M', 'F') else 'U'

        birth = record.first('BIRT')
        if birth is not None:
            person.birth_date = self._report(self.extract_event_date(birth), f"Individual {person_id}: birth date")
            person.birth_place = self._report(self.extract_event_place(birth), f"Individual {person_id}: birth place")

        death = record.first('DEAT')
        if death is not None:
            person.death_date = self._report(self.extract_event_date(death), f"Individual {person_id}: death date")
            person.death_place = self._report(self.extract_event_place(death), f"Individual {person_id}: death place")

        person.occupation = self._extract_text(record, 'OCCU').value
        person.title = self._extract_text(record, 'TITL').value
        person.notes = self._extract_notes(record).value
        person.residences = self._parse_residences(record, person_id)

        family_as_child = self._extract_pointer(record, 'FAMC')
        person.family_as_child = self._report(family_as_child, f"Individual {person_id}: FAMC")
        for fams in record.all('FAMS'):
            if self._is_pointer(fams.value):
                person.families_as_spouse.append(fams.value)

        return person

    def _parse_residences(self, record: GedcomNode, person_id: str) -> list[GenealogyResidence]:
        residences = []
        for resi in record.all('RESI'):
            start = self._report(self.extract_event_date(resi), f"Individual {person_id}: residence date")
            place = self._report(self.extract_event_place(resi), f"Individual {person_id}: residence place")
            if start is None and place is None:
                continue

            end = None
            if start is not None and start.modifier == BETWEEN and start.end_year:
                end = GenealogyDate(raw=start.raw, year=start.end_year)
            residences.append(GenealogyResidence(start_date=start, end_date=end, place=place))
        return residences

    # ------------------------------------------------------------------
    # Families
    # ------------------------------------------------------------------

    def _parse_family(self, record: GedcomNode) -> GenealogyFamily | None:
        """Parse a FAM record; records without an identifier are dropped"""
        if not record.xref:
            self.warnings.append("Family record without identifier dropped")
            logger.warning("Dropped FAM record without identifier")
            return None

        family_id = record.xref
        family = GenealogyFamily(id=family_id)
        family.husband_id = self._report(self._extract_pointer(record, 'HUSB'), f"Family {family_id}: HUSB")
        family.wife_id = self._report(self._extract_pointer(record, 'WIFE'), f"Family {family_id}: WIFE")

        # Some exporters write the non-standard CHILD tag
        children = record.all('CHIL') or record.all('CHILD')
        for child in children:
            if self._is_pointer(child.value):
                family.child_ids.append(child.value)
            else:
                self.warnings.append(f"Family {family_id}: malformed child pointer '{child.value}'")

        marriage = record.first('MARR')
        if marriage is not None:
            family.marriage_date = self._report(self.extract_event_date(marriage), f"Family {family_id}: marriage date")
            family.marriage_place = self._report(self.extract_event_place(marriage),
                                                 f"Family {family_id}: marriage place")

        divorce = record.first('DIV')
        if divorce is not None:
            family.divorce_date = self._report(self.extract_event_date(divorce), f"Family {family_id}: divorce date")

        family.notes = self._extract_notes(record).value
        return family

    def _check_references(self, persons: list[GenealogyPerson], families: list[GenealogyFamily]) -> None:
        """Drop family pointers to persons that are not in this file"""
        known = {person.id for person in persons}
        for family in families:
            if family.husband_id and family.husband_id not in known:
                self.warnings.append(f"Family {family.id}: husband {family.husband_id} not found")
                family.husband_id = None
            if family.wife_id and family.wife_id not in known:
                self.warnings.append(f"Family {family.id}: wife {family.wife_id} not found")
                family.wife_id = None
            missing = [child_id for child_id in family.child_ids if child_id not in known]
            for child_id in missing:
                self.warnings.append(f"Family {family.id}: child {child_id} not found")
            family.child_ids = [child_id for child_id in family.child_ids if child_id in known]

    # ------------------------------------------------------------------
    # Field extraction
    # ------------------------------------------------------------------

    def _report(self, extraction: Extraction, context: str):
        """Record a warning for malformed extractions and return the carried value"""
        if extraction.is_malformed:
            self.warnings.append(f"{context}: {extraction.reason}")
        return extraction.value

    def _extract_text(self, node: GedcomNode, tag: str) -> Extraction:
        child = node.first(tag)
        if child is None:
            return Extraction.absent()
        value = child.text()
        return Extraction.found(value) if value else Extraction.absent()

    def _extract_pointer(self, node: GedcomNode, tag: str) -> Extraction:
        child = node.first(tag)
        if child is None or not child.value or child.value == VOID_POINTER:
            return Extraction.absent()
        if not self._is_pointer(child.value):
            return Extraction.malformed(f"malformed pointer '{child.value}'")
        return Extraction.found(child.value)

    def _extract_notes(self, node: GedcomNode) -> Extraction:
        """Join inline notes and resolved note records"""
        notes = []
        for note in node.all('NOTE'):
            if self._is_pointer(note.value):
                text = self.note_records.get(note.value)
            else:
                text = note.text()
            if text:
                notes.append(text)
        return Extraction.found('\n'.join(notes)) if notes else Extraction.absent()

    def extract_event_date(self, event: GedcomNode) -> Extraction:
        """Extract the DATE of an event sub-tree"""
        date_node = event.first('DATE')
        if date_node is None or not date_node.value:
            return Extraction.absent()
        parsed = GenealogyDateParser.parse_gedcom_date(date_node.value)
        if parsed is None:
            return Extraction.absent()
        if parsed.is_empty:
            return Extraction.malformed(f"unparsable date '{date_node.value}'", value=parsed)
        return Extraction.found(parsed)

    def extract_event_place(self, event: GedcomNode) -> Extraction:
        """Extract the PLAC of an event sub-tree, with MAP coordinates when present"""
        place_node = event.first('PLAC')
        if place_node is None or not place_node.value:
            return Extraction.absent()

        map_node = place_node.first('MAP')
        if map_node is None:
            return Extraction.found(GenealogyPlace(name=place_node.value))

        latitude = self.parse_coordinate(self._extract_text(map_node, 'LATI').value)
        longitude = self.parse_coordinate(self._extract_text(map_node, 'LONG').value)
        place = GenealogyPlace(name=place_node.value, latitude=latitude, longitude=longitude)
        if not place.has_coordinates:
            return Extraction.malformed("malformed MAP coordinates", value=place)
        return Extraction.found(place)

    @staticmethod
    def parse_coordinate(value: str | None) -> float | None:
        """Parse "N45.764043" / "W4.83" style coordinates; S and W are negative"""
        if not value:
            return None
        match = _COORDINATE_PATTERN.match(value.strip())
        if not match:
            return None
        direction, number = match.groups()
        coordinate = float(number)
        if direction and direction.upper() in ('S', 'W'):
            coordinate = -abs(coordinate)
        return coordinate

    @staticmethod
    def extract_first_name(full_name: str) -> str:
        """First name from the GEDCOM "First /LAST/" convention"""
        match = re.match(r'^([^/]+)', full_name)
        return match.group(1).strip() if match else ''

    @staticmethod
    def extract_last_name(full_name: str) -> str:
        """Last name from the GEDCOM "First /LAST/" convention"""
        match = re.search(r'/([^/]+)/?', full_name)
        return match.group(1).strip() if match else ''

    @staticmethod
    def _is_pointer(value: str) -> bool:
        return bool(value) and value != VOID_POINTER and bool(_POINTER_PATTERN.match(value))
