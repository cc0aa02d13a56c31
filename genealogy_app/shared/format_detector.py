"""
Genealogy file format detection from content or file name
"""

import re
from pathlib import Path

from .models import FORMAT_GEDCOM_551, FORMAT_GEDCOM_70


GEDCOM = 'gedcom'
GENEWEB = 'geneweb'

# Number of leading lines inspected for GeneWeb markers
GENEWEB_HEADER_LINES = 20

EXTENSIONS = {
    '.ged': GEDCOM,
    '.gw': GENEWEB,
}

_GEDCOM_VERSION = re.compile(r'1\s+GEDC\s*[\r\n]+\s*2\s+VERS\s+(\d+)')
_GENEWEB_FAMILY_LINE = re.compile(r'^fam\s+')


def detect_by_content(text: str) -> str | None:
    """
    Classify file content as GEDCOM or GeneWeb

    GEDCOM files start with the "0 HEAD" record; GeneWeb files declare their
    encoding (or gwplus mode) or contain a "fam" line near the top.
    """
    if not text:
        return None

    stripped = text.lstrip('\ufeff \t\r\n')
    if stripped.startswith('0 HEAD'):
        return GEDCOM

    head_lines = stripped.splitlines()[:GENEWEB_HEADER_LINES]
    for line in head_lines:
        lowered = line.strip().lower()
        if lowered.startswith(('[encoding:', 'encoding:')) or lowered in ('[gwplus]', 'gwplus'):
            return GENEWEB
        if _GENEWEB_FAMILY_LINE.match(line.strip()):
            return GENEWEB

    return None


def detect_by_name(file_name: str) -> str | None:
    """Extension based fallback (.ged, .gw)"""
    if not file_name:
        return None
    return EXTENSIONS.get(Path(file_name).suffix.lower())


def is_genealogy_file(file_name: str) -> bool:
    """Check whether a file name carries a supported extension"""
    return detect_by_name(file_name) is not None


def detect_gedcom_version(text: str) -> str | None:
    """Read the GEDC/VERS header to tell GEDCOM 5.5.1 from 7.0"""
    match = _GEDCOM_VERSION.search(text or '')
    if not match:
        return None
    return FORMAT_GEDCOM_70 if int(match.group(1)) >= 7 else FORMAT_GEDCOM_551
