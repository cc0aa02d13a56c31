"""
GeneWeb (.gw) parser - a line scanner over the gwplus grammar
"""

import re
from dataclasses import dataclass, field
from pathlib import Path

from .date_utils import GenealogyDateParser
from .logging_config import get_project_logger
from .models import (
    EXACT,
    FORMAT_GENEWEB,
    GenealogyData,
    GenealogyDate,
    GenealogyFamily,
    GenealogyMetadata,
    GenealogyPerson,
    GenealogyPlace,
    GenealogyResidence,
)


logger = get_project_logger(__name__)

# Scanner modes
NO_BLOCK = 'none'
CHILDREN_BLOCK = 'children-block'
NOTES_BLOCK = 'notes-block'
PERSON_EVENTS_BLOCK = 'person-events-block'
FAMILY_EVENTS_BLOCK = 'family-events-block'

BLOCK_TERMINATORS = {'end', 'end notes', 'end pevt', 'end fevt'}

_TAG_PATTERN = re.compile(r'#(\w+)\s+(\S+)')
_MARRIAGE_DATE = re.compile(r'\+([~?<>]?(?:\d{1,2}/){0,2}\d{3,4})')
_MARRIAGE_PLACE = re.compile(r'#mp\s+(\S+)')
_CHILD_LINE = re.compile(r'^-\s+(h|f)\s+(\S+)')
_YEAR_RANGE = re.compile(r'(\d{3,4})\.\.(\d{3,4})')
_EVENT_PLACE = re.compile(r'#p\s+(\S+)')
_SURNAME_TOKEN = re.compile(r"^[A-ZÀ-Ý][A-ZÀ-Ý_'\-]+$")
_GIVEN_NAME_TOKEN = re.compile(r"^[A-ZÀ-Ý][a-zß-ÿ_'\-]*$")
_ENCODING_DECLARATION = re.compile(rb'encoding:\s*([\w\-]+)', re.IGNORECASE)


def _unescape(value: str) -> str:
    """GeneWeb writes spaces inside names and places as underscores"""
    return value.replace('_', ' ')


def person_key(last_name: str, first_name: str) -> str:
    return f"{last_name}_{first_name}"


@dataclass
class GeneWebParseContext:
    """
    Everything the scanner accumulates during one parse.

    A fresh context is created per call and discarded afterwards.
    """
    persons: dict[str, GenealogyPerson] = field(default_factory=dict)
    families: list[GenealogyFamily] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    current_family: GenealogyFamily | None = None
    mode: str = NO_BLOCK
    block_lines: list[str] = field(default_factory=list)
    block_target: str | None = None
    person_counter: int = 1
    family_counter: int = 1

    def next_person_id(self) -> str:
        person_id = f"@I{self.person_counter}@"
        self.person_counter += 1
        return person_id

    def next_family_id(self) -> str:
        family_id = f"@F{self.family_counter}@"
        self.family_counter += 1
        return family_id

    def open_block(self, mode: str, target: str | None = None):
        self.mode = mode
        self.block_lines = []
        self.block_target = target

    def close_block(self):
        self.mode = NO_BLOCK
        self.block_lines = []
        self.block_target = None

    def find_person(self, person_id: str) -> GenealogyPerson | None:
        for person in self.persons.values():
            if person.id == person_id:
                return person
        return None


class GeneWebParser:
    """Parse GeneWeb files into GenealogyData"""

    def parse_file(self, file_path: str) -> GenealogyData:
        """Parse a .gw file from disk"""
        path = Path(file_path)
        return self.parse(path.read_bytes(), path.name)

    def parse(self, content: bytes | str, file_name: str) -> GenealogyData:
        """Parse GeneWeb content (raw bytes or already decoded text)"""
        context = GeneWebParseContext()
        text, encoding = self._decode(content, context)

        for line_number, line in enumerate(text.splitlines(), 1):
            self._scan_line(line.strip(), line_number, context)

        if context.mode != NO_BLOCK:
            context.warnings.append(f"Unterminated {context.mode} at end of file")

        persons = list(context.persons.values())
        logger.info(
            f"Parsed {len(persons)} individuals and {len(context.families)} families "
            f"from {file_name} ({len(context.warnings)} warnings)"
        )

        return GenealogyData(
            format=FORMAT_GENEWEB,
            file_name=file_name,
            persons=persons,
            families=context.families,
            metadata=GenealogyMetadata(source='GeneWeb', encoding=encoding),
            warnings=context.warnings,
        )

    def _decode(self, content: bytes | str, context: GeneWebParseContext) -> tuple[str, str | None]:
        """Decode bytes using the declared encoding, defaulting to UTF-8"""
        if isinstance(content, str):
            text = content.lstrip('\ufeff')
            match = re.search(r'encoding:\s*([\w\-]+)', text[:500], re.IGNORECASE)
            return text, match.group(1) if match else None

        match = _ENCODING_DECLARATION.search(content[:500])
        declared = match.group(1).decode('ascii', 'ignore') if match else None

        if declared and declared.lower() in ('iso-8859-1', 'latin-1', 'latin1'):
            return content.decode('latin-1'), declared

        try:
            return content.decode('utf-8-sig'), declared
        except UnicodeDecodeError:
            context.warnings.append("File is not valid UTF-8, decoded as Latin-1")
            return content.decode('latin-1'), declared

    # ------------------------------------------------------------------
    # Line dispatch
    # ------------------------------------------------------------------

    def _scan_line(self, line: str, line_number: int, context: GeneWebParseContext):
        if context.mode != NO_BLOCK:
            if line in BLOCK_TERMINATORS:
                self._finish_block(context)
            elif line == 'beg' and context.mode == NOTES_BLOCK and not context.block_lines:
                # Notes text is wrapped in its own beg / end notes pair
                return
            elif line:
                context.block_lines.append(line)
            return

        if not line or line.startswith('#'):
            return

        lowered = line.lower()
        if lowered.startswith(('[encoding:', 'encoding:')) or lowered in ('[gwplus]', 'gwplus'):
            return

        if line.startswith('fam '):
            family = self.parse_family_line(line[4:], context)
            if family is None:
                context.warnings.append(f"Line {line_number}: could not locate spouses in family line")
                logger.warning(f"Skipped family line {line_number}: no spouse separator")
            else:
                context.families.append(family)
            context.current_family = family
        elif line == 'beg':
            context.open_block(CHILDREN_BLOCK)
        elif line.startswith('notes '):
            context.open_block(NOTES_BLOCK, line[6:].strip())
        elif line.startswith('pevt '):
            context.open_block(PERSON_EVENTS_BLOCK, line[5:].strip())
        elif line.startswith('fevt '):
            context.open_block(FAMILY_EVENTS_BLOCK, line[5:].strip())
        # Any other directive is not needed here

    def _finish_block(self, context: GeneWebParseContext):
        mode = context.mode
        lines = context.block_lines
        target = context.block_target

        if mode == CHILDREN_BLOCK:
            if context.current_family is not None:
                self.parse_children(lines, context)
            elif lines:
                context.warnings.append("Children block without a family line, children skipped")
            context.current_family = None
        elif mode == NOTES_BLOCK:
            self.apply_notes(target, '\n'.join(lines), context)
        elif mode == PERSON_EVENTS_BLOCK:
            self.apply_person_events(target, lines, context)
        elif mode == FAMILY_EVENTS_BLOCK:
            self.apply_family_events(target, lines, context)

        context.close_block()

    # ------------------------------------------------------------------
    # Family lines
    # ------------------------------------------------------------------

    def parse_family_line(self, line: str, context: GeneWebParseContext) -> GenealogyFamily | None:
        """
        Parse "HUSBAND Given [dates] [+DATE] [#mp PLACE] [+] WIFE Given [dates]".

        Returns None when the spouse separator cannot be located.
        """
        index, has_plus = self.find_spouse_separator(line)
        if index < 0:
            return None

        husband_part = line[:index].strip()
        wife_part = line[index + 1:].strip() if has_plus else line[index:].strip()

        marriage_date, marriage_place, husband_part = self.extract_marriage_info(husband_part)

        family = GenealogyFamily(id=context.next_family_id(), marriage_date=marriage_date,
                                 marriage_place=marriage_place)

        husband = self.parse_person_fragment(husband_part, 'M', context)
        wife = self.parse_person_fragment(wife_part, 'F', context)
        if husband is None or wife is None:
            context.warnings.append(f"Family {family.id}: incomplete spouse in '{line[:60]}'")

        for spouse in (husband, wife):
            if spouse is not None and family.id not in spouse.families_as_spouse:
                spouse.families_as_spouse.append(family.id)

        family.husband_id = husband.id if husband else None
        family.wife_id = wife.id if wife else None
        return family

    @staticmethod
    def find_spouse_separator(line: str) -> tuple[int, bool]:
        """
        Locate where the wife's fields begin.

        Returns (index, has_plus): an explicit "+" followed by a name wins; a
        "+" followed by a date is a marriage date instead. Otherwise the first
        all-uppercase surname followed by a capitalized given name marks the
        wife. (-1, False) when neither is found.
        """
        for index, char in enumerate(line):
            if char != '+':
                continue
            after = line[index + 1:].strip()
            if re.match(r'^[~?<>]?\d', after):
                continue
            if after[:1].isupper():
                return index, True

        tokens = list(re.finditer(r'\S+', line))
        skip_next = False
        for position, match in enumerate(tokens):
            token = match.group()
            if position < 2:
                continue
            if skip_next:
                skip_next = False
                continue
            if token.startswith('#'):
                skip_next = True
                continue
            if token.startswith('+') or token[:1].isdigit() or token[:1] in '~?<>':
                continue
            if _SURNAME_TOKEN.match(token) and position + 1 < len(tokens):
                if _GIVEN_NAME_TOKEN.match(tokens[position + 1].group()):
                    return match.start(), False

        return -1, False

    @staticmethod
    def extract_marriage_info(part: str) -> tuple[GenealogyDate | None, GenealogyPlace | None, str]:
        """Pull the +DATE token and #mp PLACE tag out of the husband's segment"""
        marriage_date = None
        marriage_place = None
        rest = part

        date_match = _MARRIAGE_DATE.search(rest)
        if date_match:
            marriage_date = GenealogyDateParser.parse_geneweb_date(date_match.group(1))
            rest = (rest[:date_match.start()] + rest[date_match.end():]).strip()

        place_match = _MARRIAGE_PLACE.search(rest)
        if place_match:
            marriage_place = GenealogyPlace(name=_unescape(place_match.group(1)))
            rest = (rest[:place_match.start()] + rest[place_match.end():]).strip()

        return marriage_date, marriage_place, re.sub(r'\s+', ' ', rest)

    @staticmethod
    def extract_tags(text: str) -> dict[str, str]:
        """Collect inline "#tag value" annotations"""
        return {tag: value for tag, value in _TAG_PATTERN.findall(text)}

    @staticmethod
    def date_slots(tokens: list[str]) -> list[GenealogyDate | None]:
        """Birth then death dates; a lone "0" keeps the slot of an unknown date"""
        slots = []
        for token in tokens:
            if token == '0':
                slots.append(None)
            elif GenealogyDateParser.is_geneweb_date(token):
                slots.append(GenealogyDateParser.parse_geneweb_date(token))
        return slots

    def parse_person_fragment(self, part: str, default_sex: str,
                              context: GeneWebParseContext) -> GenealogyPerson | None:
        """Parse "SURNAME GivenName [dates...] [#tags]" and register the person"""
        if not part.strip():
            return None

        tags = self.extract_tags(part)
        tokens = _TAG_PATTERN.sub(' ', part).split()
        if len(tokens) < 2:
            return None

        last_name = _unescape(tokens[0])
        first_name = _unescape(tokens[1])

        dates = self.date_slots(tokens[2:])

        fragment = GenealogyPerson(
            id='',
            first_name=first_name,
            last_name=last_name,
            sex=default_sex,
            birth_date=dates[0] if dates else None,
            death_date=dates[1] if len(dates) > 1 else None,
            birth_place=GenealogyPlace(name=_unescape(tags['bp'])) if 'bp' in tags else None,
            death_place=GenealogyPlace(name=_unescape(tags['dp'])) if 'dp' in tags else None,
            occupation=_unescape(tags['occu']) if 'occu' in tags else None,
        )
        return self.register_person(fragment, context)

    @staticmethod
    def register_person(fragment: GenealogyPerson, context: GeneWebParseContext) -> GenealogyPerson:
        """
        Add a person or merge into the one already known under the same key.
        Merging only fills fields that are still unset.
        """
        key = person_key(fragment.last_name, fragment.first_name)
        existing = context.persons.get(key)
        if existing is None:
            fragment.id = context.next_person_id()
            context.persons[key] = fragment
            return fragment

        for name in ('birth_date', 'birth_place', 'death_date', 'death_place', 'occupation',
                     'family_as_child'):
            if getattr(existing, name) is None and getattr(fragment, name) is not None:
                setattr(existing, name, getattr(fragment, name))
        return existing

    # ------------------------------------------------------------------
    # Blocks
    # ------------------------------------------------------------------

    def parse_children(self, lines: list[str], context: GeneWebParseContext):
        """Children lines "- h|f GivenName [#tags] [dates]" of the current family"""
        family = context.current_family
        father = context.find_person(family.husband_id) if family.husband_id else None
        mother = context.find_person(family.wife_id) if family.wife_id else None
        surname = father.last_name if father else (mother.last_name if mother else '')

        for line in lines:
            match = _CHILD_LINE.match(line)
            if not match:
                continue

            tags = self.extract_tags(line)
            tokens = _TAG_PATTERN.sub(' ', line).split()[3:]
            dates = self.date_slots(tokens)

            fragment = GenealogyPerson(
                id='',
                first_name=_unescape(match.group(2)),
                last_name=surname,
                sex='M' if match.group(1) == 'h' else 'F',
                birth_date=dates[0] if dates else None,
                death_date=dates[1] if len(dates) > 1 else None,
                birth_place=GenealogyPlace(name=_unescape(tags['bp'])) if 'bp' in tags else None,
                death_place=GenealogyPlace(name=_unescape(tags['dp'])) if 'dp' in tags else None,
                occupation=_unescape(tags['occu']) if 'occu' in tags else None,
                family_as_child=family.id,
            )
            child = self.register_person(fragment, context)
            if child.id not in family.child_ids:
                family.child_ids.append(child.id)

    def _resolve_target(self, target: str | None, context: GeneWebParseContext) -> GenealogyPerson | None:
        """Find the person named by a block header "SURNAME GivenName" """
        parts = (target or '').split()
        if len(parts) < 2:
            context.warnings.append(f"Block target '{target}' is not a person name")
            return None
        person = context.persons.get(person_key(_unescape(parts[0]), _unescape(parts[1])))
        if person is None:
            context.warnings.append(f"Block target '{target}' does not match a known person")
        return person

    def apply_notes(self, target: str | None, notes: str, context: GeneWebParseContext):
        person = self._resolve_target(target, context)
        if person is not None and notes:
            person.notes = notes

    @staticmethod
    def _event_date(line: str) -> GenealogyDate | None:
        for token in line.split()[1:]:
            if GenealogyDateParser.is_geneweb_date(token):
                return GenealogyDateParser.parse_geneweb_date(token)
        return None

    @staticmethod
    def _event_place(line: str) -> GenealogyPlace | None:
        match = _EVENT_PLACE.search(line)
        return GenealogyPlace(name=_unescape(match.group(1))) if match else None

    def apply_person_events(self, target: str | None, lines: list[str], context: GeneWebParseContext):
        """Apply #birt, #deat, #occu and #resi lines from a pevt block"""
        person = self._resolve_target(target, context)
        if person is None:
            return

        for line in lines:
            if line.startswith('#birt'):
                person.birth_date = self._event_date(line) or person.birth_date
                person.birth_place = self._event_place(line) or person.birth_place
            elif line.startswith('#deat'):
                person.death_date = self._event_date(line) or person.death_date
                person.death_place = self._event_place(line) or person.death_place
            elif line.startswith('#occu'):
                match = re.match(r'#occu\s+(\S+)', line)
                if match:
                    person.occupation = _unescape(match.group(1))
            elif line.startswith('#resi'):
                residence = self._parse_residence(line)
                if residence is not None:
                    person.residences.append(residence)

    def _parse_residence(self, line: str) -> GenealogyResidence | None:
        start = end = None
        range_match = _YEAR_RANGE.search(line)
        if range_match:
            start = GenealogyDate(raw=range_match.group(0), year=int(range_match.group(1)), modifier=EXACT)
            end = GenealogyDate(raw=range_match.group(0), year=int(range_match.group(2)), modifier=EXACT)
        else:
            start = self._event_date(line)

        place = self._event_place(line)
        if start is None and place is None:
            return None
        return GenealogyResidence(start_date=start, end_date=end, place=place)

    def apply_family_events(self, target: str | None, lines: list[str], context: GeneWebParseContext):
        """Apply #marr and #div lines to the family whose husband is the target"""
        husband = self._resolve_target(target, context)
        if husband is None:
            return

        family = next((f for f in context.families if f.husband_id == husband.id), None)
        if family is None:
            context.warnings.append(f"No family with husband '{target}' for family events")
            return

        for line in lines:
            if line.startswith('#marr'):
                family.marriage_date = self._event_date(line) or family.marriage_date
                family.marriage_place = self._event_place(line) or family.marriage_place
            elif line.startswith('#div'):
                family.divorce_date = self._event_date(line) or family.divorce_date
