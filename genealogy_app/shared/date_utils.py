"""
Genealogy date utilities for GEDCOM and GeneWeb date grammars
"""

import calendar
import datetime
import re
import unicodedata

from .models import ABOUT, AFTER, BEFORE, BETWEEN, EXACT, GenealogyDate


class GenealogyDateParser:
    """Handles GEDCOM and GeneWeb date formats and conversions"""

    # GEDCOM standard month abbreviations
    GEDCOM_MONTHS = {
        'JAN': 1, 'FEB': 2, 'MAR': 3, 'APR': 4, 'MAY': 5, 'JUN': 6,
        'JUL': 7, 'AUG': 8, 'SEP': 9, 'OCT': 10, 'NOV': 11, 'DEC': 12,
    }

    # Everything the fallback parser accepts, keys without diacritics
    MONTH_NAMES = {
        **GEDCOM_MONTHS,
        'JANUARY': 1, 'FEBRUARY': 2, 'MARCH': 3, 'APRIL': 4, 'JUNE': 6,
        'JULY': 7, 'AUGUST': 8, 'SEPT': 9, 'SEPTEMBER': 9, 'OCTOBER': 10,
        'NOVEMBER': 11, 'DECEMBER': 12,
        # French, full and abbreviated
        'JANVIER': 1, 'JANV': 1,
        'FEVRIER': 2, 'FEVR': 2, 'FEV': 2,
        'MARS': 3,
        'AVRIL': 4, 'AVR': 4,
        'MAI': 5,
        'JUIN': 6,
        'JUILLET': 7, 'JUIL': 7,
        'AOUT': 8,
        'SEPTEMBRE': 9,
        'OCTOBRE': 10,
        'NOVEMBRE': 11,
        'DECEMBRE': 12,
    }

    MODIFIER_PREFIXES = [
        (('ABT', 'ABOUT', 'EST', 'CAL'), ABOUT),
        (('BEF', 'BEFORE'), BEFORE),
        (('AFT', 'AFTER'), AFTER),
        (('BET', 'FROM'), BETWEEN),
    ]

    _STRUCTURED_DATE = r'(?:(\d{1,2})\s+)?(?:(JAN|FEB|MAR|APR|MAY|JUN|JUL|AUG|SEP|OCT|NOV|DEC)\s+)?(\d{1,4})'
    _STRUCTURED_SIMPLE = re.compile(rf'^(?:(ABT|CAL|EST|BEF|AFT)\.?\s+)?{_STRUCTURED_DATE}$')
    _STRUCTURED_PERIOD = re.compile(
        rf'^(?:FROM\s+{_STRUCTURED_DATE})?\s*(?:TO\s+{_STRUCTURED_DATE})?$'
    )
    _STRUCTURED_RANGE = re.compile(rf'^BET\s+{_STRUCTURED_DATE}\s+AND\s+{_STRUCTURED_DATE}$')
    _STRUCTURED_MODIFIERS = {'ABT': ABOUT, 'CAL': ABOUT, 'EST': ABOUT, 'BEF': BEFORE, 'AFT': AFTER}

    GENEWEB_DATE = re.compile(r'^[~?<>]?(?:\d{1,2}/){0,2}\d{3,4}(?:\.\.(?:\d{3,4})?)?$')

    @staticmethod
    def strip_accents(text: str) -> str:
        """Remove diacritics so 'Février' and 'FEVRIER' compare equal"""
        decomposed = unicodedata.normalize('NFKD', text)
        return ''.join(char for char in decomposed if not unicodedata.combining(char))

    @classmethod
    def parse_month(cls, name: str) -> int | None:
        """Parse an English or French month name (any case, with or without accents)"""
        key = cls.strip_accents(name).upper().strip('.,')
        return cls.MONTH_NAMES.get(key)

    # ------------------------------------------------------------------
    # GEDCOM
    # ------------------------------------------------------------------

    @classmethod
    def parse_gedcom_date(cls, raw: str) -> GenealogyDate | None:
        """
        Parse a GEDCOM DATE value.

        Tries the strict GEDCOM grammar first (day/month/year with an optional
        ABT/CAL/EST/BEF/AFT modifier, FROM...TO periods, BET...AND ranges), then
        falls back to a tolerant token scan. Returns None only for empty input;
        an unparsable value still yields a date carrying its raw text.
        """
        if not raw or not raw.strip():
            return None

        raw = raw.strip()
        structured = cls._parse_structured(raw)
        if structured is not None:
            return structured
        return cls.parse_raw_date(raw)

    @classmethod
    def _parse_structured(cls, raw: str) -> GenealogyDate | None:
        text = re.sub(r'\s+', ' ', raw.upper())

        match = cls._STRUCTURED_SIMPLE.match(text)
        if match:
            modifier_tag, day, month, year = match.groups()
            return cls._structured_date(raw, day, month, year, cls._STRUCTURED_MODIFIERS.get(modifier_tag, EXACT))

        match = cls._STRUCTURED_RANGE.match(text)
        if match:
            day, month, year, _, _, end_year = match.groups()
            result = cls._structured_date(raw, day, month, year, BETWEEN)
            if result is not None:
                result.end_year = int(end_year)
            return result

        if text.startswith(('FROM ', 'TO ')):
            match = cls._STRUCTURED_PERIOD.match(text)
            if match:
                day, month, year, _, _, end_year = match.groups()
                if year is None:
                    # "TO 1900" alone: open start, known end
                    return GenealogyDate(raw=raw, modifier=BETWEEN, end_year=int(end_year))
                result = cls._structured_date(raw, day, month, year, BETWEEN)
                if result is not None and end_year:
                    result.end_year = int(end_year)
                return result

        return None

    @classmethod
    def _structured_date(cls, raw: str, day: str | None, month: str | None, year: str,
                         modifier: str) -> GenealogyDate | None:
        day_value = int(day) if day else None
        if day_value is not None and not 1 <= day_value <= 31:
            return None
        # A day without a month is not valid GEDCOM; let the fallback decide
        if day_value is not None and month is None:
            return None
        return GenealogyDate(
            raw=raw,
            day=day_value,
            month=cls.GEDCOM_MONTHS[month] if month else None,
            year=int(year),
            modifier=modifier,
        )

    @classmethod
    def detect_modifier(cls, raw: str) -> str:
        """Detect the modifier from the leading keyword of a raw date string"""
        first_word = re.split(r'[\s.]+', raw.strip().upper(), maxsplit=1)[0]
        for prefixes, modifier in cls.MODIFIER_PREFIXES:
            if first_word in prefixes:
                return modifier
        return EXACT

    @classmethod
    def parse_raw_date(cls, raw: str) -> GenealogyDate:
        """
        Tolerant fallback: scan tokens for a day, a month name and a year.

        A number greater than 31 is always a year; a number 1-31 seen before
        any year is the day.
        """
        modifier = cls.detect_modifier(raw)
        clean = re.sub(r'^(ABT|ABOUT|EST|CAL|BEF|BEFORE|AFT|AFTER|BET|FROM|TO)\b\.?\s*', '', raw.strip(),
                       flags=re.IGNORECASE)

        end_year = None
        range_match = re.search(r'\s*\b(AND|TO)\b\s*(.*)$', clean, flags=re.IGNORECASE)
        if range_match:
            end_years = re.findall(r'\d{3,4}', range_match.group(2))
            if end_years and modifier == BETWEEN:
                end_year = int(end_years[-1])
            clean = clean[:range_match.start()]

        day = month = year = None
        for part in re.split(r'[\s,/.\-]+', clean.strip()):
            if not part:
                continue
            if part.isdecimal():
                number = int(part)
                if number > 31:
                    year = number
                elif day is None and year is None and number >= 1:
                    day = number
            else:
                month_number = cls.parse_month(part)
                if month_number:
                    month = month_number

        return GenealogyDate(raw=raw, day=day, month=month, year=year, modifier=modifier, end_year=end_year)

    # ------------------------------------------------------------------
    # GeneWeb
    # ------------------------------------------------------------------

    @classmethod
    def is_geneweb_date(cls, token: str) -> bool:
        """Check whether a token uses the compact GeneWeb date grammar"""
        return bool(cls.GENEWEB_DATE.match(token))

    @classmethod
    def parse_geneweb_date(cls, token: str) -> GenealogyDate:
        """
        Parse a GeneWeb date: dd/mm/yyyy, mm/yyyy or yyyy, with the ~ ? < >
        modifier prefixes and an optional ..yyyy range end.
        Out-of-range day or month components are dropped.
        """
        modifier = EXACT
        clean = token.strip()

        if clean[:1] in ('~', '?'):
            modifier = ABOUT
            clean = clean[1:]
        elif clean[:1] == '<':
            modifier = BEFORE
            clean = clean[1:]
        elif clean[:1] == '>':
            modifier = AFTER
            clean = clean[1:]

        end_year = None
        if '..' in clean:
            clean, end_part = clean.split('..', 1)
            modifier = BETWEEN
            end_year = cls._to_int(end_part.split('/')[-1]) if end_part else None

        parts = clean.split('/')
        day = month = year = None
        if len(parts) == 3:
            day, month, year = (cls._to_int(part) for part in parts)
        elif len(parts) == 2:
            month, year = (cls._to_int(part) for part in parts)
        elif len(parts) == 1:
            year = cls._to_int(parts[0])

        if day is not None and not 1 <= day <= 31:
            day = None
        if month is not None and not 1 <= month <= 12:
            month = None
        if year is not None and year <= 0:
            year = None

        return GenealogyDate(raw=token, day=day, month=month, year=year, modifier=modifier, end_year=end_year)

    @staticmethod
    def _to_int(text: str) -> int | None:
        text = text.strip()
        return int(text) if text.isdecimal() else None


def format_date(gdate: GenealogyDate) -> str:
    """
    Format a date in the compact dd/mm/yyyy notation with its modifier prefix.
    Falls back to the raw text when no component is known.
    """
    parts = []
    if gdate.day:
        parts.append(f"{gdate.day:02d}")
    if gdate.month:
        parts.append(f"{gdate.month:02d}")
    if gdate.year:
        parts.append(str(gdate.year))

    if not parts:
        return gdate.raw

    formatted = '/'.join(parts)
    if gdate.modifier == ABOUT:
        formatted = f"~{formatted}"
    elif gdate.modifier == BEFORE:
        formatted = f"<{formatted}"
    elif gdate.modifier == AFTER:
        formatted = f">{formatted}"
    elif gdate.modifier == BETWEEN:
        formatted = f"{formatted}..{gdate.end_year or ''}"
    return formatted


def to_calendar_date(gdate: GenealogyDate | None) -> datetime.date | None:
    """
    Convert to a calendar date, defaulting unknown month/day to 1.
    Returns None when the year is unknown.
    """
    if gdate is None or gdate.year is None:
        return None
    if not datetime.MINYEAR <= gdate.year <= datetime.MAXYEAR:
        return None
    month = gdate.month or 1
    day = gdate.day or 1
    day = min(day, calendar.monthrange(gdate.year, month)[1])
    return datetime.date(gdate.year, month, day)
