"""Text formatters for command output and the periodic report."""

from cmdlayers.models import Domain, Quantity, VariableStore

REPORT_RULE = "-" * 64
_HEADER_INDENT = " " * 11
_HEADER_GAP = " " * 12
_CELL_GAP = " " * 9


def format_number(quantity: Quantity, value: float | int) -> str:
    if quantity.integral:
        return str(int(value))
    return f"{value:.2f}"


def format_value_line(quantity: Quantity, value: float | int) -> str:
    """Render one value the way the parameter editors echo it."""
    return f"{quantity.label} = {format_number(quantity, value)} {quantity.unit}"


def _format_cell(quantity: Quantity, value: float | int) -> str:
    if quantity is Quantity.VOLTAGE:
        return f"{value:6.2f} V"
    if quantity is Quantity.AMPERAGE:
        return f"{value:6.2f} A"
    return f"{int(value):4d} rpm"


def format_report(store: VariableStore) -> str:
    """Render every domain of every quantity as a fixed-width table.

    The layout is byte-for-byte stable: a leading blank line, dashed rules
    around the header and below the last row, one row per domain.
    """
    header = _HEADER_INDENT + "".join(
        f"{_HEADER_GAP}{quantity.label:>4}" for quantity in Quantity
    )
    lines = ["", REPORT_RULE, header, REPORT_RULE]
    for domain in Domain:
        row = store.row(domain)
        cells = "".join(
            f"{_CELL_GAP}{_format_cell(quantity, value)}" for quantity, value in row.items()
        )
        lines.append(f"{domain.descriptor}{cells}")
    lines.append(REPORT_RULE)
    return "\n".join(lines) + "\n"
