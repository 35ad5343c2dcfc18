"""Transaction reason-code catalogue.

Codes follow the CHESS holding-adjustment reason codes used on Australian
registers. The catalogue is static reference data.
"""

from __future__ import annotations

from types import MappingProxyType

_DOMAIN_TRANSACTION_REASONS = MappingProxyType(
    {
        "ADJ": "Adjustment",
        "AFO": "Adjustment for foreign ownership",
        "ALT": "Miscellaneous allotment",
        "BON": "Bonus issue allotment",
        "BSP": "Bonus plan allotment",
        "BYB": "Buy back",
        "CAL": "Call paid",
        "CAQ": "Compulsory acquisition by offeror",
        "CNA": "Convertible note allotment",
        "CNR": "Convertible note redemption / maturity",
        "CNV": "Miscellaneous conversion",
        "CRI": "Collateral removal",
        "CSC": "CHESS subregister closed",
        "DIS": "Distribution in specie",
        "DRP": "Dividend plan allotment",
        "DVM": "Divestment",
        "EXP": "Collateral expiry",
        "FLT": "Float",
        "FOR": "Forfeiture of partly paid shares",
        "IDA": "Income distribution allotment",
        "MER": "Company merger",
        "NCN": "Convertible note",
        "NRE": "Non-renounceable issue allotment",
        "OEX": "Option exercised",
        "OPT": "Option allotment",
        "PLC": "Placement",
        "PRI": "Priority issue",
        "REC": "Reconstruction",
        "RED": "Miscellaneous redemption",
        "REV": "Allotment reversal",
        "RHA": "Renounceable",
        "RHE": "Renounceable rights entitlement allotment",
        "RHT": "Renounceable rights issue allotment",
        "SAR": "Sub-register archived",
        "SCD": "Scrip dividend",
        "SOA": "Scheme of arrangement",
        "SPP": "Share purchase plan",
        "STP": "Share top-up plan",
        "TKA": "Takeover consideration allotment",
        "WAL": "Warrant allotment",
        "WDL": "Warrant delivery",
        "WEX": "Warrant exercise",
        "WRL": "Warrant rollover",
        "WUX": "Warrant underlying exercise",
    }
)


def domain_is_known_reason_code(reason_code: str) -> bool:
    """Return whether a reason code exists in the catalogue.

    Args:
        reason_code: Candidate reason code, compared case-insensitively.

    Returns:
        bool: True when the code is known.

    Raises:
        RuntimeError: This helper does not raise runtime errors.
    """

    return reason_code.strip().upper() in _DOMAIN_TRANSACTION_REASONS


def domain_reason_label(reason_code: str) -> str | None:
    """Return the human-readable label for a reason code, or None when unknown."""

    return _DOMAIN_TRANSACTION_REASONS.get(reason_code.strip().upper())


__all__ = ["domain_is_known_reason_code", "domain_reason_label"]
