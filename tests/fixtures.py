"""
Shared row fixtures.

SAMPLE_ROWS builds this full-mode graph (HS category level):

    China   -> SUZLON  (3)   SUZLON  -> HS 85xx (3)   HS 85xx -> ACME       (5)
    China   -> VESTAS  (1)   VESTAS  -> HS 85xx (1)   HS 85xx -> BETA POWER (1)
    Germany -> SIEMENS (2)   SIEMENS -> HS 85xx (2)
"""

from tradegraph.core.builder import (
    FIELD_COUNTRY, FIELD_SUPPLIER, FIELD_IMPORTER, FIELD_HS_CODE,
    FIELD_PRODUCT_NAME, FIELD_VALUE,
)


def make_row(country, supplier, importer, hs_code=None, value=None, product_name=None):
    row = {
        FIELD_COUNTRY: country,
        FIELD_SUPPLIER: supplier,
        FIELD_IMPORTER: importer,
    }
    if hs_code is not None:
        row[FIELD_HS_CODE] = hs_code
    if product_name is not None:
        row[FIELD_PRODUCT_NAME] = product_name
    if value is not None:
        row[FIELD_VALUE] = value
    return row


SPEC_EXAMPLE_ROWS = [
    make_row("China", "SUZLON LTD", "ACME INC", hs_code="850212", value="1000"),
    make_row("China", "Suzlon", "ACME", hs_code="850230", value="500"),
]

SAMPLE_ROWS = (
    [make_row("China", "SUZLON LTD", "ACME INC", hs_code="850212", value="100")] * 3
    + [make_row("China", "Vestas", "Beta Power", hs_code="850300", value="50")]
    + [make_row("Germany", "Siemens", "ACME", hs_code="850212", value="10")] * 2
)

CHINA = "country-China"
GERMANY = "country-Germany"
SUZLON = "supplier-SUZLON"
VESTAS = "supplier-VESTAS"
SIEMENS = "supplier-SIEMENS"
HS_85 = "product-HS 85xx"
ACME = "importer-ACME"
BETA = "importer-BETA POWER"


def link_id(source, target):
    return f"{source}->{target}"


def csv_text(rows, headers=None):
    """Render rows as CSV text with the given header order."""
    headers = headers or [
        FIELD_COUNTRY, FIELD_SUPPLIER, FIELD_IMPORTER,
        FIELD_HS_CODE, FIELD_PRODUCT_NAME, FIELD_VALUE,
    ]
    lines = [",".join(headers)]
    for row in rows:
        cells = []
        for header in headers:
            value = row.get(header, "")
            value = "" if value is None else str(value)
            if any(c in value for c in ',"\n'):
                value = '"' + value.replace('"', '""') + '"'
            cells.append(value)
        lines.append(",".join(cells))
    return "\n".join(lines) + "\n"
