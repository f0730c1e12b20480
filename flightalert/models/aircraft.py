"""
AircraftRecord - static reference data for ICAO24 lookups.

Maps ICAO24 hex addresses to aircraft metadata (type, registration, etc.).
Records are produced by the external CSV sync job, one JSON object per
aircraft, and are treated as immutable once fetched.
"""

from dataclasses import dataclass
from typing import Any, Optional


def _clean(value: Any) -> Optional[str]:
    if value is None:
        return None
    value = str(value).strip()
    return value or None


@dataclass(frozen=True)
class AircraftRecord:
    """
    Static aircraft information keyed by ICAO24 hex address.

    Fields:
        icao24: 6-character hex address (e.g., 'a0b1c2')
        registration: Tail number (e.g., 'N12345')
        type_code: ICAO type designator (e.g., 'B738', 'A320')
        owner: Registered owner
        operator: Airline or operator name
        operator_callsign: Radio callsign prefix (e.g., 'UNITED')
        manufacturer: Manufacturer name (e.g., 'Boeing')
        model: Model name (e.g., '737-8H4')
        serial_number: Manufacturer serial number
        built: Year or date built, as published
    """
    icao24: str
    registration: Optional[str] = None
    type_code: Optional[str] = None
    owner: Optional[str] = None
    operator: Optional[str] = None
    operator_callsign: Optional[str] = None
    manufacturer: Optional[str] = None
    model: Optional[str] = None
    serial_number: Optional[str] = None
    built: Optional[str] = None

    @classmethod
    def from_json(cls, icao24: str, data: dict) -> 'AircraftRecord':
        """
        Build a record from the stored JSON blob.

        The sync job has written several key spellings over time
        (e.g. 'typecode' vs 'type', 'manufacturerName' vs 'manufacturer'),
        so each field accepts the known aliases. A missing or non-string
        icao24 in the blob falls back to the address it was looked up by.
        """
        stored = data.get('icao24')
        if not isinstance(stored, str) or not stored.strip():
            stored = icao24
        return cls(
            icao24=stored.strip().lower(),
            registration=_clean(data.get('registration') or data.get('reg')),
            type_code=_clean(data.get('typecode') or data.get('type')),
            owner=_clean(data.get('owner')),
            operator=_clean(data.get('operator') or data.get('owner')),
            operator_callsign=_clean(data.get('operatorCallsign') or data.get('operatorcallsign')),
            manufacturer=_clean(
                data.get('manufacturerName')
                or data.get('manufacturername')
                or data.get('manufacturer')
            ),
            model=_clean(data.get('model')),
            serial_number=_clean(data.get('serialNumber') or data.get('serialnumber')),
            built=_clean(data.get('built')),
        )

    def to_dict(self) -> dict:
        return {
            'registration': self.registration,
            'typecode': self.type_code,
            'owner': self.owner,
            'operator': self.operator,
            'operatorCallsign': self.operator_callsign,
            'manufacturer': self.manufacturer,
            'model': self.model,
            'serialNumber': self.serial_number,
            'built': self.built,
        }

    def __repr__(self) -> str:
        return f'<AircraftRecord {self.icao24} {self.registration or "?"} {self.type_code or "?"}>'
