"""Range owners — corporate accounts and office users."""

from dataclasses import dataclass
from decimal import Decimal


@dataclass
class Corporate:
    id: int | None
    corporate_code: str
    company_name: str
    email: str | None = None
    contact_number: str | None = None
    is_active: bool = True
    # None means the service-wide default applies
    fuel_charge_percentage: Decimal | None = None


@dataclass
class OfficeUser:
    id: int | None
    name: str
    email: str
    role: str | None = None
    department: str | None = None
    is_active: bool = True
