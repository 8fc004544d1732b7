from dataclasses import dataclass

from ..errors import ValidationError


@dataclass(frozen=True)
class Jurisdiction:
    code: str
    name: str
    citation: str
    cure_period_days: int
    consequences: tuple


JURISDICTIONS = {
    "CA": Jurisdiction(
        code="CA",
        name="California",
        citation="California Civil Code Section 1161",
        cure_period_days=30,
        consequences=(
            "legal proceedings will be instituted against you to recover possession of said premises",
            "the lease or rental agreement under which you occupy said premises will be declared forfeited",
            "the landlord will seek to recover rents and damages for the period of unlawful detention",
            "you may be held liable for court costs and attorney's fees",
        ),
    ),
}


def get_jurisdiction(code):
    try:
        return JURISDICTIONS[(code or "").upper()]
    except KeyError:
        raise ValidationError(f"Unsupported jurisdiction: {code}")
