"""
Phone number display formatting.

Patterns are matched against the raw digit string character by character:
    - a literal character must equal the input character
    - 'x' matches any digit
    - ' ' is copied to the output without consuming input; a trailing
      ' ' copies the rest of the input as-is
A pattern matches only if it ends exactly where the input does. The
international table is tried before the NANP table and the first match
wins; there is no backtracking inside a pattern.
"""

from typing import Iterable, Optional


# NANP number formats
NANP_FORMATS = (
    "xxx xxx xxxx",
    "xxx xxxx",
    "x11",
)

# Country codes, in match order
PLUS_FORMATS = (
    # zone 1: nanp (north american numbering plan), us, canada, caribbean
    "+1 xxx xxx xxxx",          # nanp

    # zone 2: africa, some atlantic and indian ocean islands
    "+20 x xxx xxxx",           # Egypt
    "+20 1x xxx xxxx",          # Egypt
    "+20 xx xxx xxxx",          # Egypt
    "+20 xxx xxx xxxx",         # Egypt
    "+212 xxxx xxxx",           # Morocco
    "+213 xx xx xx xx",         # Algeria
    "+213 xx xxx xxxx",         # Algeria
    "+216 xx xxx xxx",          # Tunisia
    "+218 xx xxx xxx",          # Libya
    "+22x ",
    "+23x ",
    "+24x ",
    "+25x ",
    "+26x ",
    "+27 xx xxx xxxx",          # South africa
    "+290 x xxx",               # Saint Helena, Tristan da Cunha
    "+291 x xxx xxx",           # Eritrea
    "+297 xxx xxxx",            # Aruba
    "+298 xxx xxx",             # Faroe Islands
    "+299 xxx xxx",             # Greenland

    # zone 3: europe, southern and small countries
    "+30 xxx xxx xxxx",         # Greece
    "+31 6 xxxx xxxx",          # Netherlands
    "+31 xx xxx xxxx",          # Netherlands
    "+31 xxx xx xxxx",          # Netherlands
    "+32 2 xxx xx xx",          # Belgium
    "+32 3 xxx xx xx",          # Belgium
    "+32 4xx xx xx xx",         # Belgium
    "+32 9 xxx xx xx",          # Belgium
    "+32 xx xx xx xx",          # Belgium
    "+33 xxx xxx xxx",          # France
    "+34 xxx xxx xxx",          # Spain
    "+351 3xx xxx xxx",         # Portugal
    "+351 7xx xxx xxx",         # Portugal
    "+351 8xx xxx xxx",         # Portugal
    "+351 xx xxx xxxx",         # Portugal
    "+352 xx xxxx",             # Luxembourg
    "+352 6x1 xxx xxx",         # Luxembourg
    "+352 ",                    # Luxembourg
    "+353 xxx xxxx",            # Ireland
    "+353 xxxx xxxx",           # Ireland
    "+353 xx xxx xxxx",         # Ireland
    "+354 3xx xxx xxx",         # Iceland
    "+354 xxx xxxx",            # Iceland
    "+355 6x xxx xxxx",         # Albania
    "+355 xxx xxxx",            # Albania
    "+356 xx xx xx xx",         # Malta
    "+357 xx xx xx xx",         # Cyprus
    "+358 ",                    # Finland
    "+359 ",                    # Bulgaria
    "+36 1 xxx xxxx",           # Hungary
    "+36 20 xxx xxxx",          # Hungary
    "+36 21 xxx xxxx",          # Hungary
    "+36 30 xxx xxxx",          # Hungary
    "+36 70 xxx xxxx",          # Hungary
    "+36 71 xxx xxxx",          # Hungary
    "+36 xx xxx xxx",           # Hungary
    "+370 6x xxx xxx",          # Lithuania
    "+370 xxx xx xxx",          # Lithuania
    "+371 xxxx xxxx",           # Latvia
    "+372 5 xxx xxxx",          # Estonia
    "+372 xxx xxxx",            # Estonia
    "+373 6xx xx xxx",          # Moldova
    "+373 7xx xx xxx",          # Moldova
    "+373 xxx xxxxx",           # Moldova
    "+374 xx xxx xxx",          # Armenia
    "+375 xx xxx xxxx",         # Belarus
    "+376 xx xx xx",            # Andorra
    "+377 xxxx xxxx",           # Monaco
    "+378 xxx xxx xxxx",        # San Marino
    "+380 xxx xx xx xx",        # Ukraine
    "+381 xx xxx xxxx",         # Serbia
    "+382 xx xxx xxxx",         # Montenegro
    "+385 xx xxx xxxx",         # Croatia
    "+386 x xxx xxxx",          # Slovenia
    "+387 xx xx xx xx",         # Bosnia and herzegovina
    "+389 2 xxx xx xx",         # Macedonia
    "+389 xx xx xx xx",         # Macedonia
    "+39 xxx xxx xxx",          # Italy
    "+39 3xx xxx xxxx",         # Italy
    "+39 xx xxxx xxxx",         # Italy

    # zone 4: europe, northern countries
    "+40 xxx xxx xxx",          # Romania
    "+41 xx xxx xx xx",         # Switzerland
    "+420 xxx xxx xxx",         # Czech republic
    "+421 xxx xxx xxx",         # Slovakia
    "+421 xxx xxx xxxx",        # Liechtenstein
    "+43 ",                     # Austria
    "+44 xxx xxx xxxx",         # UK
    "+45 xx xx xx xx",          # Denmark
    "+46 ",                     # Sweden
    "+47 xxxx xxxx",            # Norway
    "+48 xx xxx xxxx",          # Poland
    "+49 1xx xxxx xxx",         # Germany
    "+49 1xx xxxx xxxx",        # Germany
    "+49 ",                     # Germany

    # zone 5: latin america
    "+50x ",
    "+51 9xx xxx xxx",          # Peru
    "+51 1 xxx xxxx",           # Peru
    "+51 xx xx xxxx",           # Peru
    "+52 1 xxx xxx xxxx",       # Mexico
    "+52 xxx xxx xxxx",         # Mexico
    "+53 xxxx xxxx",            # Cuba
    "+54 9 11 xxxx xxxx",       # Argentina
    "+54 9 xxx xxx xxxx",       # Argentina
    "+54 11 xxxx xxxx",         # Argentina
    "+54 xxx xxx xxxx",         # Argentina
    "+55 xx xxxx xxxx",         # Brazil
    "+56 2 xxxxxx",             # Chile
    "+56 9 xxxx xxxx",          # Chile
    "+56 xx xxxxxx",            # Chile
    "+56 xx xxxxxxx",           # Chile
    "+57 x xxx xxxx",           # Columbia
    "+57 3xx xxx xxxx",         # Columbia
    "+58 xxx xxx xxxx",         # Venezuela
    "+59x ",

    # zone 6: southeast asia and oceania
    "+60 3 xxxx xxxx",          # Malaysia
    "+60 8x xxxxxx",            # Malaysia
    "+60 x xxx xxxx",           # Malaysia
    "+60 14 x xxx xxxx",        # Malaysia
    "+60 1x xxx xxxx",          # Malaysia
    "+60 x xxxx xxxx",          # Malaysia
    "+60 ",                     # Malaysia
    "+61 4xx xxx xxx",          # Australia
    "+61 x xxxx xxxx",          # Australia
    "+62 8xx xxxx xxxx",        # Indonesia
    "+62 21 xxxxx",             # Indonesia
    "+62 xx xxxxxx",            # Indonesia
    "+62 xx xxx xxxx",          # Indonesia
    "+62 xx xxxx xxxx",         # Indonesia
    "+63 2 xxx xxxx",           # Phillipines
    "+63 xx xxx xxxx",          # Phillipines
    "+63 9xx xxx xxxx",         # Phillipines
    "+64 2 xxx xxxx",           # New Zealand
    "+64 2 xxx xxxx x",         # New Zealand
    "+64 2 xxx xxxx xx",        # New Zealand
    "+64 x xxx xxxx",           # New Zealand
    "+65 xxxx xxxx",            # Singapore
    "+66 8 xxxx xxxx",          # Thailand
    "+66 2 xxx xxxx",           # Thailand
    "+66 xx xx xxxx",           # Thailand
    "+67x ",
    "+68x ",
    "+690 x xxx",               # Tokelau
    "+691 xxx xxxx",            # Micronesia
    "+692 xxx xxxx",            # marshall Islands

    # zone 7: russia and kazakstan
    "+7 6xx xx xxxxx",          # Kazakstan
    "+7 7xx 2 xxxxxx",          # Kazakstan
    "+7 7xx xx xxxxx",          # Kazakstan
    "+7 xxx xxx xx xx",         # Russia

    # zone 8: east asia
    "+81 3 xxxx xxxx",          # Japan
    "+81 6 xxxx xxxx",          # Japan
    "+81 xx xxx xxxx",          # Japan
    "+81 x0 xxxx xxxx",         # Japan
    "+82 2 xxx xxxx",           # South korea
    "+82 2 xxxx xxxx",          # South korea
    "+82 xx xxxx xxxx",         # South korea
    "+82 xx xxx xxxx",          # South korea
    "+84 4 xxxx xxxx",          # Vietnam
    "+84 xx xxxx xxx",          # Vietnam
    "+84 xx xxxx xxxx",         # Vietnam
    "+850 ",                    # North Korea
    "+852 xxxx xxxx",           # Hong Kong
    "+853 xxxx xxxx",           # Macau
    "+855 1x xxx xxx",          # Cambodia
    "+855 9x xxx xxx",          # Cambodia
    "+855 xx xx xx xx",         # Cambodia
    "+856 20 x xxx xxx",        # Laos
    "+856 xx xxx xxx",          # Laos
    "+86 10 xxxx xxxx",         # China
    "+86 2x xxxx xxxx",         # China
    "+86 xxx xxx xxxx",         # China
    "+86 xxx xxxx xxxx",        # China
    "+880 xx xxxx xxxx",        # Bangladesh
    "+886 ",                    # Taiwan

    # zone 9: south asia, west asia, central asia, middle east
    "+90 xxx xxx xxxx",         # Turkey
    "+91 9x xx xxxxxx",         # India
    "+91 xx xxxx xxxx",         # India
    "+92 xx xxx xxxx",          # Pakistan
    "+92 3xx xxx xxxx",         # Pakistan
    "+93 70 xxx xxx",           # Afghanistan
    "+93 xx xxx xxxx",          # Afghanistan
    "+94 xx xxx xxxx",          # Sri Lanka
    "+95 1 xxx xxx",            # Burma
    "+95 2 xxx xxx",            # Burma
    "+95 xx xxxxx",             # Burma
    "+95 9 xxx xxxx",           # Burma
    "+960 xxx xxxx",            # Maldives
    "+961 x xxx xxx",           # Lebanon
    "+961 xx xxx xxx",          # Lebanon
    "+962 7 xxxx xxxx",         # Jordan
    "+962 x xxx xxxx",          # Jordan
    "+963 11 xxx xxxx",         # Syria
    "+963 xx xxx xxx",          # Syria
    "+964 ",                    # Iraq
    "+965 xxxx xxxx",           # Kuwait
    "+966 5x xxx xxxx",         # Saudi Arabia
    "+966 x xxx xxxx",          # Saudi Arabia
    "+967 7xx xxx xxx",         # Yemen
    "+967 x xxx xxx",           # Yemen
    "+968 xxxx xxxx",           # Oman
    "+970 5x xxx xxxx",         # Palestinian Authority
    "+970 x xxx xxxx",          # Palestinian Authority
    "+971 5x xxx xxxx",         # United Arab Emirates
    "+971 x xxx xxxx",          # United Arab Emirates
    "+972 5x xxx xxxx",         # Israel
    "+972 x xxx xxxx",          # Israel
    "+973 xxxx xxxx",           # Bahrain
    "+974 xxx xxxx",            # Qatar
    "+975 1x xxx xxx",          # Bhutan
    "+975 x xxx xxx",           # Bhutan
    "+976 ",                    # Mongolia
    "+977 xxxx xxxx",           # Nepal
    "+977 98 xxxx xxxx",        # Nepal
    "+98 xxx xxx xxxx",         # Iran
    "+992 xxx xxx xxx",         # Tajikistan
    "+993 xxxx xxxx",           # Turkmenistan
    "+994 xx xxx xxxx",         # Azerbaijan
    "+994 xxx xxxxx",           # Azerbaijan
    "+995 xx xxx xxx",          # Georgia
    "+996 xxx xxx xxx",         # Kyrgyzstan
    "+998 xx xxx xxxx",         # Uzbekistan
)


def match_pattern(pattern: str, number: str) -> Optional[str]:
    """Format number with a single pattern, or None if it doesn't fit."""
    out = []
    f = n = 0
    plen, nlen = len(pattern), len(number)

    while True:
        if f >= plen:
            return "".join(out) if n >= nlen else None
        if n >= nlen:
            return None
        fch, nch = pattern[f], number[n]
        if fch == nch or (fch == "x" and nch.isdigit()):
            out.append(nch)
            f += 1
            n += 1
        elif fch == " ":
            out.append(" ")
            f += 1
            # ' ' at end -> take the rest verbatim
            if f >= plen:
                return "".join(out) + number[n:]
        else:
            return None


def format_with(formats: Iterable[str], number: str) -> Optional[str]:
    number = number.strip()
    for pattern in formats:
        formatted = match_pattern(pattern, number)
        if formatted is not None:
            return formatted
    return None


def format_number(number: str) -> Optional[str]:
    """
    Format a raw dialed number for display.

    Args:
        number: Digits as recognized, optionally with a leading '+'

    Returns:
        Formatted number, or None if no pattern matches
    """
    formatted = format_with(PLUS_FORMATS, number)
    if formatted is not None:
        return formatted
    return format_with(NANP_FORMATS, number)


def space_out_digits(sentence: str) -> str:
    """Space digits so TTS reads them one at a time.

    "dial 123 456 7890" -> "dial 1 2 3, 4 5 6, 7 8 9 0"
    """
    out = []
    building_number = False
    for ch in sentence:
        if ch.isdigit():
            if building_number:
                out.append(" ")
            building_number = True
            out.append(ch)
        elif ch == " ":
            out.append("," if building_number else " ")
        else:
            building_number = False
            out.append(ch)
    return "".join(out)
